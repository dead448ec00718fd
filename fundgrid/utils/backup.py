# utils/backup.py
import json
import time
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional, Union

from fundgrid.config.settings import Config
from fundgrid.core.database.models import Strategy, TradeRecord
from fundgrid.core.errors import BackupFormatError
from fundgrid.core.state import AppState
from fundgrid.utils.logger import get_logger

logger = get_logger(__name__)

# 旧版备份文件的字段名
_LEGACY_KEYS = {
    "strategies": "gridStrategy",
    "records": "tradeRecord",
    "starredFundIds": "fundStar",
}


@dataclass
class BackupData:
    version: str
    timestamp: int
    strategies: List[Strategy]
    records: List[TradeRecord]
    starred_fund_ids: List[str]


def export_data(state: AppState) -> Dict[str, Any]:
    return {
        "version": Config.BACKUP.version,
        "timestamp": int(time.time() * 1000),
        "data": {
            "strategies": [s.to_dict() for s in state.strategies],
            "records": [r.to_dict() for r in state.records],
            "starredFundIds": list(state.starred_fund_ids),
        },
    }


def dumps_backup(data: Dict[str, Any]) -> str:
    return json.dumps(data, ensure_ascii=False, indent=2)


def backup_filename(now: Optional[datetime] = None) -> str:
    now = now or datetime.now()
    return f"{Config.BACKUP.filename_prefix}-{now.strftime('%Y%m%d')}.json"


def _section(data: Dict[str, Any], key: str) -> list:
    value = data.get(key)
    if value is None:
        value = data.get(_LEGACY_KEYS[key], [])
    if not isinstance(value, list):
        raise BackupFormatError(f"data.{key} must be a list")
    return value


def parse_backup(raw: Union[str, bytes]) -> BackupData:
    """解析并校验备份文件；任何问题都抛 BackupFormatError"""
    try:
        if isinstance(raw, bytes):
            raw = raw.decode("utf-8-sig")
        payload = json.loads(raw)
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise BackupFormatError(f"备份文件不是合法的 JSON: {e}") from e

    if not isinstance(payload, dict):
        raise BackupFormatError("备份文件顶层必须是对象")
    if not payload.get("version") or not payload.get("timestamp") or not isinstance(payload.get("data"), dict):
        raise BackupFormatError("无效的备份文件格式")

    data = payload["data"]
    try:
        strategies = [Strategy.from_dict(item) for item in _section(data, "strategies")]
        records = [TradeRecord.from_dict(item) for item in _section(data, "records")]
        starred = [str(fund_id) for fund_id in _section(data, "starredFundIds")]
        timestamp = int(payload["timestamp"])
    except BackupFormatError:
        raise
    except (KeyError, TypeError, ValueError, AttributeError, ArithmeticError) as e:
        raise BackupFormatError(f"备份内容校验失败: {e!r}") from e

    return BackupData(
        version=str(payload["version"]),
        timestamp=timestamp,
        strategies=strategies,
        records=records,
        starred_fund_ids=starred,
    )


def import_backup(state: AppState, raw: Union[str, bytes]) -> BackupData:
    """先完整解析，再一次性替换状态；失败时状态保持不变"""
    backup = parse_backup(raw)
    state.replace(backup.strategies, backup.records, backup.starred_fund_ids)
    logger.info(
        f"📥 Imported backup v{backup.version}: {len(backup.strategies)} strategies, "
        f"{len(backup.records)} records, {len(backup.starred_fund_ids)} starred"
    )
    return backup
