import json
from typing import Any

import pytest

from solana_socket.shared.classifier import Malformed, classify
from solana_socket.shared.exceptions import DeserializationError
from solana_socket.types import (
    DESERIALIZATION_FAILED,
    INVALID_PARAMS,
    AccountNotification,
    ErrorReply,
    LogsNotification,
    ProgramNotification,
    SignatureNotification,
    SignatureResult,
    SubscriptionConfirmation,
    UnsubscriptionConfirmation,
)


def test_subscription_confirmation():
    message = classify('{"jsonrpc":"2.0","result":23784,"id":"abc"}')
    assert message == SubscriptionConfirmation(id="abc", result=23784)


def test_boolean_result_is_only_an_unsubscription():
    message = classify('{"jsonrpc":"2.0","result":true,"id":"abc"}')
    assert isinstance(message, UnsubscriptionConfirmation)
    assert message.result is True
    assert not isinstance(message, SubscriptionConfirmation)


def test_false_unsubscription_result():
    message = classify('{"jsonrpc":"2.0","result":false,"id":"abc"}')
    assert isinstance(message, UnsubscriptionConfirmation)
    assert message.result is False


def test_numeric_id_is_normalized():
    message = classify('{"jsonrpc":"2.0","result":7,"id":42}')
    assert message == SubscriptionConfirmation(id="42", result=7)


def test_largest_handle_is_accepted():
    message = classify(json.dumps({"jsonrpc": "2.0", "result": 2**64 - 1, "id": "abc"}))
    assert isinstance(message, SubscriptionConfirmation)
    assert message.result == 2**64 - 1


@pytest.mark.parametrize("result", [2**64, -1, 1.5, "23784", None])
def test_invalid_handle_is_reported(result: Any):
    message = classify(json.dumps({"jsonrpc": "2.0", "result": result, "id": "abc"}))
    assert isinstance(message, Malformed)
    assert isinstance(message.error, DeserializationError)
    assert message.error.code == DESERIALIZATION_FAILED


def test_error_reply():
    raw = '{"jsonrpc":"2.0","error":{"code":-32602,"message":"Invalid param: WrongSize"},"id":"abc"}'
    message = classify(raw)
    assert isinstance(message, ErrorReply)
    assert message.id == "abc"
    assert message.error.code == INVALID_PARAMS
    assert message.error.message == "Invalid param: WrongSize"


def test_error_reply_without_id():
    message = classify('{"jsonrpc":"2.0","error":{"code":-32700,"message":"Parse error"},"id":null}')
    assert isinstance(message, ErrorReply)
    assert message.id is None


def test_each_notification_method(notification_frames: dict[str, dict[str, Any]]):
    expected = {
        "accountNotification": AccountNotification,
        "programNotification": ProgramNotification,
        "signatureNotification": SignatureNotification,
        "logsNotification": LogsNotification,
    }
    for method, frame in notification_frames.items():
        message = classify(json.dumps(frame))
        assert isinstance(message, expected[method])
        assert message.params.subscription == frame["params"]["subscription"]


def test_account_notification_payload(notification_frames: dict[str, dict[str, Any]]):
    message = classify(json.dumps(notification_frames["accountNotification"]))
    assert isinstance(message, AccountNotification)

    result = message.params.result
    assert result.context.slot == 5208469
    assert result.value.lamports == 33594
    assert result.value.rent_epoch == 635
    assert result.value.encoding == "base64"
    assert result.value.raw_data() == b"hello solana"


def test_program_notification_payload(notification_frames: dict[str, dict[str, Any]]):
    message = classify(json.dumps(notification_frames["programNotification"]))
    assert isinstance(message, ProgramNotification)
    assert message.params.result.value.pubkey == "H4vnBqifaSACnKa7acsxstsY1iV1bvJNxsCY7enrd1hq"
    assert message.params.result.value.account.owner == "11111111111111111111111111111111"


def test_signature_notification_variants(notification_frames: dict[str, dict[str, Any]]):
    message = classify(json.dumps(notification_frames["signatureNotification"]))
    assert isinstance(message, SignatureNotification)
    assert isinstance(message.params.result.value, SignatureResult)
    assert message.params.result.value.err is None

    received = notification_frames["signatureNotification"]
    received["params"]["result"]["value"] = "receivedSignature"
    message = classify(json.dumps(received))
    assert isinstance(message, SignatureNotification)
    assert message.params.result.value == "receivedSignature"


def test_bytes_are_decoded(notification_frames: dict[str, dict[str, Any]]):
    message = classify(json.dumps(notification_frames["logsNotification"]).encode())
    assert isinstance(message, LogsNotification)
    assert message.params.result.value.logs == ["Program 83astBRguLMdt2h5U1Tpdq5tjFoJ6noeGwaY3mDLVcri success"]


def test_unknown_method_is_dropped_silently():
    raw = '{"jsonrpc":"2.0","method":"slotNotification","params":{"result":{"slot":1},"subscription":3}}'
    assert classify(raw) == Malformed(raw)


def test_notification_with_bad_payload_is_reported():
    raw = '{"jsonrpc":"2.0","method":"accountNotification","params":{"subscription":3}}'
    message = classify(raw)
    assert isinstance(message, Malformed)
    assert message.error is not None
    assert "accountNotification" in message.error.error.message


@pytest.mark.parametrize(
    "raw",
    [
        "not json",
        "[1, 2, 3]",
        '"text"',
        '{"jsonrpc":"2.0","id":"abc"}',
        "{}",
    ],
)
def test_unusable_frames_are_reported(raw: str):
    message = classify(raw)
    assert isinstance(message, Malformed)
    assert message.raw == raw
    assert message.error is not None
    assert message.error.error.data == raw
