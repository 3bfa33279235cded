"""Global constants for service_kit.

This module defines constants used throughout the framework to avoid
hardcoded strings and make the codebase more maintainable.
"""

# Notification namespace for bus events (e.g. "service_kit.events.user_created")
EVENT_NAMESPACE = "service_kit.events"

# Task name under which async service calls are enqueued
SERVICE_JOB_TASK = "service_kit.jobs.ServiceJob"

# Job options stripped from call_async keyword arguments before they reach the service
JOB_OPTION_KEYS = ("queue", "priority", "wait", "wait_until")

# Class attribute suffix for inline schema constants (e.g. ARGUMENTS_SCHEMA)
SCHEMA_CONSTANT_SUFFIX = "_SCHEMA"

# Class name suffixes dropped when deriving a schema namespace
NAMESPACE_STRIPPED_SUFFIXES = ("Service", "Handler")
