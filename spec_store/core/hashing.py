"""콘텐츠 해시 (변경 감지용)"""

import hashlib
import re
from typing import Optional, Union

SHORT_DIGEST_LENGTH = 16

_DIGEST_PATTERN = re.compile(r"^[a-f0-9]{64}$", re.IGNORECASE)


def _as_bytes(data: Union[bytes, str]) -> bytes:
    return data.encode("utf-8") if isinstance(data, str) else data


def digest(data: Union[bytes, str]) -> str:
    """SHA-256 해시 (64자리 hex)

    Args:
        data: 원본 바이트 (str이면 UTF-8로 인코딩)

    Returns:
        str: 소문자 hex 문자열
    """
    return hashlib.sha256(_as_bytes(data)).hexdigest()


def short_digest(data: Union[bytes, str]) -> str:
    """표시용 축약 해시. 동등성 비교에 사용하지 않는다."""
    return digest(data)[:SHORT_DIGEST_LENGTH]


def digests_equal(prior: Optional[str], new: Optional[str]) -> bool:
    """이전 해시가 없으면 항상 다른 것으로 간주"""
    if not prior or not new:
        return False
    return prior == new


def is_valid_digest(value: Optional[str]) -> bool:
    return bool(value) and _DIGEST_PATTERN.match(value) is not None
