# core/validation.py
import math

from fundgrid.core.errors import ValidationError


def require_positive(name: str, value) -> float:
    """有限正数（净值 / 金额 / 网格宽度），否则抛 ValidationError"""
    if isinstance(value, bool):
        raise ValidationError(f"{name} must be a number, got {value!r}")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{name} must be a number, got {value!r}") from None
    if not math.isfinite(number) or number <= 0:
        raise ValidationError(f"{name} must be positive, got {value!r}")
    return number


def require_grid_count(value) -> int:
    """网格数量：>= 1 的整数；1.0 这样的整值浮点数可以接受，1.5 / nan / True 不行"""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError(f"grid_count must be an integer, got {value!r}")
    if isinstance(value, float) and not (math.isfinite(value) and value.is_integer()):
        raise ValidationError(f"grid_count must be an integer, got {value!r}")
    if value < 1:
        raise ValidationError(f"grid_count must be >= 1, got {value!r}")
    return int(value)


def require_bool(name: str, value) -> bool:
    if not isinstance(value, bool):
        raise ValidationError(f"{name} must be true or false, got {value!r}")
    return value
