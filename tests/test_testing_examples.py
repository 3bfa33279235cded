"""Tests for the schema example builders."""

from service_kit import Response, Service
from service_kit.testing import ExampleExtractor, arguments_example, deep_merge, result_example

PAYMENT_ARGUMENTS = {
    "type": "object",
    "required": ["user_id", "amount", "currency"],
    "properties": {
        "user_id": {"type": "integer", "example": 123},
        "amount": {"type": "number", "examples": [100.0, 25.5]},
        "currency": {"type": "string", "example": "USD"},
        "card": {
            "type": "object",
            "properties": {
                "last4": {"type": "string", "example": "4242"},
                "brand": {"type": "string", "example": "visa"},
            },
        },
        "note": {"type": "string"},
    },
}

PAYMENT_RESULT = {
    "type": "object",
    "required": ["transaction_id", "status"],
    "properties": {
        "transaction_id": {"type": "string", "example": "txn_abc123"},
        "status": {"type": "string", "example": "approved"},
    },
}


class ProcessPaymentService(Service):
    """Charges a card; schemas carry examples."""

    ARGUMENTS_SCHEMA = PAYMENT_ARGUMENTS
    RESULT_SCHEMA = PAYMENT_RESULT

    def __init__(self, user_id, amount, currency, card=None, note=None):
        self.amount = amount
        self.currency = currency

    def call(self):
        return self.success({"transaction_id": "txn_1", "status": "approved"})


class TestExampleExtractor:
    """Example extraction from schemas."""

    def test_simple_and_nested_properties(self):
        """example and the first of examples are used; nested objects are walked."""
        assert ExampleExtractor(PAYMENT_ARGUMENTS).extract() == {
            "user_id": 123,
            "amount": 100.0,
            "currency": "USD",
            "card": {"last4": "4242", "brand": "visa"},
        }

    def test_explicit_null_example_is_kept(self):
        """An example of null is an example, not a missing one."""
        schema = {"type": "object", "properties": {"deleted_at": {"type": ["string", "null"], "example": None}}}
        assert ExampleExtractor(schema).extract() == {"deleted_at": None}

    def test_arrays(self):
        """Arrays use their own example or one item built from the items schema."""
        schema = {
            "type": "object",
            "properties": {
                "ids": {"type": "array", "example": [1, 2, 3]},
                "tags": {"type": "array", "items": {"type": "string", "examples": ["vip", "new"]}},
                "lines": {
                    "type": "array",
                    "items": {"type": "object", "properties": {"sku": {"type": "string", "example": "A-1"}}},
                },
                "empty": {"type": "array", "items": {"type": "integer"}},
                "untyped": {"type": "array"},
            },
        }

        assert ExampleExtractor(schema).extract() == {
            "ids": [1, 2, 3],
            "tags": ["vip"],
            "lines": [{"sku": "A-1"}],
        }

    def test_no_schema(self):
        """Missing schemas and schemas without properties give no examples."""
        assert ExampleExtractor(None).extract() == {}
        assert ExampleExtractor({"type": "object"}).extract() == {}


def test_deep_merge():
    """Nested mappings are merged key by key; other values are replaced."""
    base = {"card": {"last4": "4242", "brand": "visa"}, "tags": ["a"]}

    merged = deep_merge(base, {"card": {"brand": "amex"}, "tags": ["b"]})

    assert merged == {"card": {"last4": "4242", "brand": "amex"}, "tags": ["b"]}
    assert base["card"]["brand"] == "visa"


def test_arguments_example_with_overrides():
    """Argument examples are ready to pass to call, with overrides deep-merged."""
    args = arguments_example(ProcessPaymentService, amount=50.0, card={"brand": "amex"})

    assert args == {
        "user_id": 123,
        "amount": 50.0,
        "currency": "USD",
        "card": {"last4": "4242", "brand": "amex"},
    }
    assert ProcessPaymentService.call(**args).success


def test_result_example():
    """Result examples come wrapped in a success Response."""
    expected = result_example(ProcessPaymentService, status="pending")

    assert isinstance(expected, Response)
    assert expected.success
    assert expected.data == {"transaction_id": "txn_abc123", "status": "pending"}

    response = ProcessPaymentService.call(**arguments_example(ProcessPaymentService))
    assert response.data.keys() == expected.data.keys()


def test_examples_for_service_without_schema():
    """Services without schemas give empty examples."""

    class PingService(Service):
        def call(self):
            return self.success()

    assert arguments_example(PingService) == {}
    assert result_example(PingService).data == {}
