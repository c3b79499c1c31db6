"""전역 로깅 설정

모든 로그 레코드에 request_id를 붙입니다 (HTTP 요청 또는 WebSocket 연결 단위).
"""

import logging
import sys

from app.core.config import settings


class ColoredFormatter(logging.Formatter):
    """컬러 로그 포맷터 (개발 환경용)"""

    COLORS = {
        "DEBUG": "\033[36m",  # Cyan
        "INFO": "\033[32m",  # Green
        "WARNING": "\033[33m",  # Yellow
        "ERROR": "\033[31m",  # Red
        "CRITICAL": "\033[35m",  # Magenta
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelname, self.RESET)
        record.levelname = f"{color}{record.levelname}{self.RESET}"
        return super().format(record)


class RequestIdFilter(logging.Filter):
    """현재 컨텍스트의 요청 ID를 레코드에 주입 (없으면 "-")"""

    def filter(self, record: logging.LogRecord) -> bool:
        from app.core.middlewares.context import get_request_id

        record.request_id = get_request_id() or "-"
        return True


def setup_logging() -> None:
    """애플리케이션 로깅 설정"""
    log_level = logging.DEBUG if settings.debug else logging.INFO

    if settings.is_development:
        formatter: logging.Formatter = ColoredFormatter(
            fmt=(
                "%(asctime)s | %(levelname)-8s | %(request_id)s | "
                "%(name)s:%(lineno)d | %(message)s"
            ),
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    else:
        # 프로덕션: 한 줄 JSON
        formatter = logging.Formatter(
            fmt=(
                '{"timestamp": "%(asctime)s", "level": "%(levelname)s", '
                '"request_id": "%(request_id)s", "logger": "%(name)s", '
                '"message": "%(message)s"}'
            ),
            datefmt="%Y-%m-%dT%H:%M:%S%z",
        )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)
    handler.setLevel(log_level)
    handler.addFilter(RequestIdFilter())

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()
    root_logger.addHandler(handler)

    # 외부 라이브러리 로그 레벨 조정
    logging.getLogger("uvicorn").setLevel(logging.INFO)
    logging.getLogger("uvicorn.access").setLevel(logging.INFO)
    logging.getLogger("sqlalchemy.engine").setLevel(
        logging.INFO if settings.database_echo else logging.WARNING
    )
    for noisy in ("httpx", "httpcore", "LiteLLM", "langfuse"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """로거 인스턴스 반환

    Example::

        from app.core.logging import get_logger
        logger = get_logger(__name__)
        logger.info(f"Kept {len(ranked)} tips after on-topic gating")
    """
    return logging.getLogger(name)
