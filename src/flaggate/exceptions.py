"""flaggate ライブラリの例外型定義"""

from __future__ import annotations


class FlagGateError(Exception):
    """flaggate ライブラリのエラー基底クラス。"""

    def __init__(
        self,
        code: str,
        message: str,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        if cause is not None:
            self.__cause__ = cause

    def __str__(self) -> str:
        return f"{self.code}: {super().__str__()}"


class FlagGateErrorCodes:
    """FlagGateError のエラーコード定数。"""

    INVALID_ARGUMENT: str = "INVALID_ARGUMENT"
    FLAG_NOT_FOUND: str = "FLAG_NOT_FOUND"
    RULE_NOT_FOUND: str = "RULE_NOT_FOUND"
    FLAG_ALREADY_EXISTS: str = "FLAG_ALREADY_EXISTS"
    HTTP_ERROR: str = "HTTP_ERROR"
    CONNECTION_ERROR: str = "CONNECTION_ERROR"
    TIMEOUT: str = "TIMEOUT"
    INVALID_RESPONSE: str = "INVALID_RESPONSE"
    CONFIG_ERROR: str = "CONFIG_ERROR"
