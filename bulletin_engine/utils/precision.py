#!/usr/bin/env python3
"""
精度处理工具模块
统一平均分、差值等数值的舍入规则（四舍五入，ROUND_HALF_UP）
"""
from typing import Dict, Any, Union, List, Optional
from decimal import Decimal, ROUND_HALF_UP
import math
import logging

logger = logging.getLogger(__name__)


def format_decimal(value: Union[float, int, str, None], decimal_places: int = 2) -> Optional[float]:
    """
    格式化数值到指定小数位数

    Args:
        value: 需要格式化的数值
        decimal_places: 小数位数，默认2位

    Returns:
        格式化后的浮点数，None、NaN、无穷大返回None
    """
    if value is None or isinstance(value, bool):
        return None

    try:
        if isinstance(value, str):
            if value.strip() == '' or value.lower() in ['null', 'none', 'nan']:
                return None
            value = float(value)

        if not isinstance(value, (int, float, Decimal)):
            return None

        if isinstance(value, float) and (math.isinf(value) or math.isnan(value)):
            return None

        # 使用Decimal进行精确计算，避免浮点数精度问题
        quantum = Decimal(1).scaleb(-decimal_places) if decimal_places > 0 else Decimal(1)
        rounded_decimal = Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP)
        return float(rounded_decimal)
    except (ValueError, TypeError, ArithmeticError) as e:
        logger.warning(f"数值格式化失败: {value}, 错误: {str(e)}")
        return None


def round2(value: Union[float, int, None]) -> Optional[float]:
    """两位小数精度处理，None保持None"""
    return format_decimal(value, 2)


def batch_format_dict(data: Dict[str, Any], decimal_places: int = 2,
                      exclude_keys: Optional[List[str]] = None) -> Dict[str, Any]:
    """
    递归格式化字典中的浮点数值

    Args:
        data: 待处理的字典
        decimal_places: 小数位数
        exclude_keys: 不做处理的键

    Returns:
        处理后的新字典
    """
    exclude_keys = exclude_keys or []
    result = {}

    for key, value in data.items():
        if key in exclude_keys:
            result[key] = value
        elif isinstance(value, dict):
            result[key] = batch_format_dict(value, decimal_places, exclude_keys)
        elif isinstance(value, list):
            result[key] = [
                batch_format_dict(item, decimal_places, exclude_keys) if isinstance(item, dict)
                else _format_scalar(item, decimal_places)
                for item in value
            ]
        else:
            result[key] = _format_scalar(value, decimal_places)

    return result


def _format_scalar(value: Any, decimal_places: int) -> Any:
    # 只处理浮点数，整数（如排名、人数）保持原样
    if isinstance(value, float):
        return format_decimal(value, decimal_places)
    return value
