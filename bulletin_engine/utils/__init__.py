# 工具模块
from .precision import round2, format_decimal, batch_format_dict

__all__ = ['round2', 'format_decimal', 'batch_format_dict']
