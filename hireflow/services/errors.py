from __future__ import annotations


class RecruitingError(RuntimeError):
    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.status_code = status_code


class NotFoundError(RecruitingError):
    def __init__(self, message: str):
        super().__init__(message, status_code=404)


class ParseResumeError(RecruitingError):
    def __init__(self, message: str, status_code: int = 500, *, code: str = "parse_failed"):
        super().__init__(message, status_code=status_code)
        self.code = code
