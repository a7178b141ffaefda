import pytest

from application.commands.base import CommandHandler, CommandMiddleware, CommandType
from application.commands.bus import CommandBus
from application.commands.exceptions import (
    CommandExecutionException,
    CommandHandlerNotFoundException,
    CommandValidationException,
)
from application.commands.middleware import ValidationCommandMiddleware
from application.commands.orders import CancelOrderCommand
from application.commands.payments import ProcessPaymentCommand


class RecordingHandler(CommandHandler):
    handles = CommandType.CANCEL_ORDER

    def __init__(self, name, priority=0, calls=None, error=None):
        self.name = name
        self.priority = priority
        self.calls = calls if calls is not None else []
        self.error = error

    def handle(self, command):
        self.calls.append(self.name)
        if self.error is not None:
            raise self.error
        return self.name


class RecordingMiddleware(CommandMiddleware):
    def __init__(self, name, order, log):
        self.name = name
        self.order = order
        self.log = log

    def pre_process(self, command):
        self.log.append(f"pre:{self.name}")

    def post_process(self, command, result):
        self.log.append(f"post:{self.name}")

    def on_error(self, command, exc):
        self.log.append(f"error:{self.name}")


def _cancel():
    return CancelOrderCommand(order_id="O1", requested_by="tester")


def test_highest_priority_handler_wins():
    bus = CommandBus()
    bus.register_handler(RecordingHandler("low", priority=1))
    bus.register_handler(RecordingHandler("high", priority=5))
    assert bus.execute(_cancel()) == "high"


def test_equal_priority_prefers_first_registered():
    bus = CommandBus()
    bus.register_handler(RecordingHandler("first", priority=3))
    bus.register_handler(RecordingHandler("second", priority=3))
    assert bus.execute(_cancel()) == "first"


def test_middlewares_run_in_ascending_order():
    log = []
    bus = CommandBus()
    bus.register_middleware(RecordingMiddleware("b", 20, log))
    bus.register_middleware(RecordingMiddleware("a", 5, log))
    bus.register_handler(RecordingHandler("h"))
    bus.execute(_cancel())
    assert log == ["pre:a", "pre:b", "post:a", "post:b"]


def test_missing_handler_is_wrapped():
    bus = CommandBus()
    with pytest.raises(CommandExecutionException) as exc_info:
        bus.execute(_cancel())
    assert isinstance(exc_info.value.__cause__, CommandHandlerNotFoundException)
    assert exc_info.value.__cause__.message == "No handler found for command type: CANCEL_ORDER"


def test_handler_error_runs_error_hooks_and_keeps_cause():
    log = []
    bus = CommandBus()
    bus.register_middleware(RecordingMiddleware("m", 1, log))
    bus.register_handler(RecordingHandler("h", error=RuntimeError("boom")))
    with pytest.raises(CommandExecutionException) as exc_info:
        bus.execute(_cancel())
    assert log == ["pre:m", "error:m"]
    assert exc_info.value.message == "Command execution failed"
    assert isinstance(exc_info.value.cause, RuntimeError)


def test_invalid_command_never_reaches_handler():
    calls = []
    bus = CommandBus()
    bus.register_handler(RecordingHandler("h", calls=calls))
    with pytest.raises(CommandExecutionException) as exc_info:
        bus.execute(CancelOrderCommand(order_id="", requested_by="tester"))
    assert isinstance(exc_info.value.__cause__, CommandValidationException)
    assert calls == []


def test_process_payment_validation_messages():
    with pytest.raises(CommandValidationException, match="Amount must be positive"):
        ProcessPaymentCommand(order_id="O1", payment_method="VNPAY", amount=0).validate()
    with pytest.raises(CommandValidationException, match="Order ID is required"):
        ProcessPaymentCommand(order_id="", payment_method="VNPAY", amount=10).validate()


def test_validation_middleware_rejects_unknown_payment_method():
    command = ProcessPaymentCommand(order_id="O1", payment_method="PAYPAL", amount=10)
    with pytest.raises(CommandValidationException) as exc_info:
        ValidationCommandMiddleware().pre_process(command)
    assert exc_info.value.field == "payment_method"
