"""Result codes reported by Automato operations, and the error that carries them."""

from enum import IntEnum

UNKNOWN_ERROR = "unknown error code"


class ResultCode(IntEnum):
    """Outcome of an Automato operation; only OK means success."""

    OK = 0
    NO_MESSAGE_RECEIVED = 1
    INVALID_MESSAGE_TYPE = 2
    INVALID_PIN_NUMBER = 3
    INVALID_MEM_ADDRESS = 4
    INVALID_MEM_LENGTH = 5
    INVALID_REPLY_MESSAGE = 6
    OPERATION_FORBIDDEN = 7
    REPLY_TIMEOUT = 8
    RH_ROUTER_ERROR_INVALID_LENGTH = 9
    RH_ROUTER_ERROR_NO_ROUTE = 10
    RH_ROUTER_ERROR_TIMEOUT = 11
    RH_ROUTER_ERROR_NO_REPLY = 12
    RH_ROUTER_ERROR_UNABLE_TO_DELIVER = 13
    INVALID_RH_ROUTER_ERROR = 14
    INVALID_MAPFIELD_INDEX = 15


_STRINGS = {
    ResultCode.OK: "ok",
    ResultCode.NO_MESSAGE_RECEIVED: "no message received",
    ResultCode.INVALID_MESSAGE_TYPE: "invalid message type",
    ResultCode.INVALID_PIN_NUMBER: "invalid pin number",
    ResultCode.INVALID_MEM_ADDRESS: "invalid mem address",
    ResultCode.INVALID_MEM_LENGTH: "invalid mem length",
    ResultCode.INVALID_REPLY_MESSAGE: "expected a reply message",
    ResultCode.OPERATION_FORBIDDEN: "operation forbidden",
    ResultCode.REPLY_TIMEOUT: "timeout waiting for reply message",
    ResultCode.RH_ROUTER_ERROR_INVALID_LENGTH: "router error invalid length",
    ResultCode.RH_ROUTER_ERROR_NO_ROUTE: "router error no route",
    ResultCode.RH_ROUTER_ERROR_TIMEOUT: "router error timeout",
    ResultCode.RH_ROUTER_ERROR_NO_REPLY: "router error no reply",
    ResultCode.RH_ROUTER_ERROR_UNABLE_TO_DELIVER: "router error unable to deliver",
    ResultCode.INVALID_RH_ROUTER_ERROR: "invalid rh router error code",
    ResultCode.INVALID_MAPFIELD_INDEX: "rc_invalid_mapfield_index",
}


def result_string(code):
    """Return the human-readable text for a result code."""
    try:
        return _STRINGS[ResultCode(code)]
    except (ValueError, TypeError):
        return UNKNOWN_ERROR


class AutomatoError(Exception):
    """An operation failed with a result code other than OK."""

    def __init__(self, code):
        try:
            code = ResultCode(code)
        except (ValueError, TypeError):
            pass
        if code == ResultCode.OK:
            raise ValueError("ResultCode.OK does not describe an error")
        self.code = code
        self.message = result_string(code)
        super().__init__(self.message)