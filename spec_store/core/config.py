"""프로젝트 설정 관리"""

import logging
from pathlib import Path
from typing import List
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore"
    )
    """애플리케이션 설정"""

    # 프로젝트 경로
    PROJECT_ROOT: Path = Path(__file__).parent.parent.parent
    DATA_DIR: Path = PROJECT_ROOT / "data"
    SPECS_DIR: Path = DATA_DIR / "specs"
    DB_PATH: Path = DATA_DIR / "openapi.db"

    # 소스 로딩 설정
    SUPPORTED_EXTENSIONS: List[str] = [".yaml", ".yml", ".json"]
    URL_TIMEOUT: float = 30.0  # seconds

    # 디렉토리 감시 설정
    WATCH_DEBOUNCE_MS: int = 100

    # 인제스트 설정
    ENABLE_VALIDATION: bool = True
    SKIP_INVALID_FILES: bool = False
    ENABLE_LOGGING: bool = True

    # 로깅
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    @property
    def watch_debounce_seconds(self) -> float:
        return self.WATCH_DEBOUNCE_MS / 1000.0

    def ensure_directories(self):
        """필요한 디렉토리 생성"""
        for dir_path in [
            self.DATA_DIR,
            self.SPECS_DIR,
            self.DB_PATH.parent,
        ]:
            dir_path.mkdir(parents=True, exist_ok=True)


def configure_logging(config: "Settings" = None) -> None:
    """LOG_LEVEL / LOG_FORMAT 설정으로 루트 로거 구성

    Args:
        config: 사용할 설정 (기본값: 전역 settings)
    """
    config = config or settings
    logging.basicConfig(
        level=getattr(logging, config.LOG_LEVEL.upper(), logging.INFO),
        format=config.LOG_FORMAT,
    )


# 전역 설정 인스턴스
settings = Settings()
