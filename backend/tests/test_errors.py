"""
错误处理模块测试
"""
import pytest
from fastapi import status
from fastapi.responses import PlainTextResponse
from core.errors import (
    ErrorCode,
    AppException,
    ValidationException,
    InvalidNoteNameException,
    AuthException,
    NotFoundException,
    StorageException,
    DecryptionFailed,
    app_exception_handler,
    ERROR_MESSAGES
)


class TestErrors:
    """错误处理测试"""

    def test_error_codes(self):
        """测试错误码定义"""
        assert ErrorCode.SUCCESS == 0
        assert ErrorCode.INTERNAL_ERROR == 1000
        assert ErrorCode.PASSWORD_INCORRECT == 2008

    def test_app_exception(self):
        """测试应用异常基类"""
        exc = AppException(code=ErrorCode.RESOURCE_NOT_FOUND)
        assert exc.code == ErrorCode.RESOURCE_NOT_FOUND
        assert exc.http_status == status.HTTP_404_NOT_FOUND
        assert exc.message == ERROR_MESSAGES[ErrorCode.RESOURCE_NOT_FOUND]

        resp = exc.to_response()
        assert isinstance(resp, PlainTextResponse)
        assert resp.status_code == status.HTTP_404_NOT_FOUND
        assert resp.body == b"404 Not Found"

    def test_specific_exceptions(self):
        """测试具体异常类"""
        # 验证异常
        v_exc = ValidationException()
        assert v_exc.code == ErrorCode.VALIDATION_ERROR
        assert v_exc.http_status == status.HTTP_400_BAD_REQUEST

        # 笔记名称无效 -> 重定向
        n_exc = InvalidNoteNameException("bad name")
        assert isinstance(n_exc, ValidationException)
        assert n_exc.note_name == "bad name"
        assert n_exc.http_status == status.HTTP_302_FOUND

        # 认证异常
        a_exc = AuthException()
        assert a_exc.code == ErrorCode.PASSWORD_INCORRECT
        assert a_exc.http_status == status.HTTP_401_UNAUTHORIZED
        assert a_exc.message == "Invalid password"

        # 资源不存在异常
        nf_exc = NotFoundException(ErrorCode.SHARE_NOT_FOUND)
        assert nf_exc.http_status == status.HTTP_404_NOT_FOUND

        # 存储异常
        s_exc = StorageException("写入失败: _tmp/abc")
        assert s_exc.code == ErrorCode.STORAGE_ERROR
        assert s_exc.http_status == status.HTTP_500_INTERNAL_SERVER_ERROR

        # 解密失败
        d_exc = DecryptionFailed()
        assert d_exc.code == ErrorCode.DECRYPTION_FAILED

    def test_server_errors_hide_details(self):
        """测试 5xx 响应不泄露内部信息"""
        exc = StorageException("写入失败: _tmp/secret-note")
        resp = exc.to_response()
        assert resp.status_code == 500
        assert b"secret-note" not in resp.body
        assert resp.body == ERROR_MESSAGES[ErrorCode.STORAGE_ERROR].encode()

    def test_client_errors_keep_message(self):
        """测试 4xx 响应使用异常消息"""
        exc = NotFoundException(ErrorCode.SHARE_NOT_FOUND)
        assert exc.public_message == ERROR_MESSAGES[ErrorCode.SHARE_NOT_FOUND]

    @pytest.mark.asyncio
    async def test_handler(self):
        """测试异常处理器"""
        exc = AppException(code=ErrorCode.INTERNAL_ERROR)
        resp = await app_exception_handler(None, exc)
        assert resp.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
