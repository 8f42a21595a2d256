"""
Errors raised by content generation.

Messages are shown to learners as-is, so they are in Vietnamese.
"""

from typing import Optional


LESSON_ERROR_MESSAGE = "Không thể tải nội dung bài học. Vui lòng thử lại sau."
QUICK_REVIEW_ERROR_MESSAGE = "Không thể tải câu hỏi ôn tập nhanh. Vui lòng thử lại sau."
FEEDBACK_ERROR_MESSAGE = "Lỗi khi tạo gợi ý. Vui lòng thử lại sau."
FEEDBACK_EMPTY_MESSAGE = "Không thể tạo gợi ý lộ trình tiếp theo. Vui lòng thử lại."

STATUS_MESSAGES = {
    400: "Yêu cầu không hợp lệ. Vui lòng kiểm tra lại cấu trúc lời nhắc.",
    403: "Lỗi xác thực API. Vui lòng kiểm tra khóa API của bạn.",
    500: "Lỗi máy chủ nội bộ. Vui lòng thử lại sau.",
}


class GenerationError(Exception):
    """A content-generation request failed (network, auth, quota or bad payload)."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code

    @classmethod
    def from_status(cls, status_code: Optional[int], default: str = LESSON_ERROR_MESSAGE) -> "GenerationError":
        return cls(STATUS_MESSAGES.get(status_code, default), status_code)
