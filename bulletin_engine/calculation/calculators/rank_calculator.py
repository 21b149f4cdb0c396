# 排名计算器
import logging
from typing import Dict, Iterable, Optional

from ...schemas.entities import Grade, Subject, Student, GradingScale
from .average_calculator import student_averages

logger = logging.getLogger(__name__)

UNRANKED_PLACEHOLDER = '-'


def ranks(students: Iterable[Student], period_id: str, grades: Iterable[Grade],
          subjects: Iterable[Subject], scale: Optional[GradingScale] = None) -> Dict[str, int]:
    """
    计算周期内学生排名

    - 没有平均分的学生不参与排名（不是排在最后）
    - 按平均分降序，名次为排序后的位置(从1开始)
    - 平均分相同的学生获得不同的连续名次，相对顺序保持学生输入顺序（稳定排序）

    Returns:
        {student_id: rank}
    """
    averages = student_averages(students, period_id, grades, subjects, scale)
    ranked = [(student_id, avg) for student_id, avg in averages.items() if avg is not None]

    # sorted为稳定排序，并列者保持输入顺序
    ranked = sorted(ranked, key=lambda item: item[1], reverse=True)

    result = {student_id: position for position, (student_id, _) in enumerate(ranked, start=1)}
    logger.debug(f"周期{period_id}排名完成: 参与{len(result)}人, 未参与{len(averages) - len(result)}人")
    return result


def format_rank(rank: Optional[int], class_size: int) -> str:
    """名次显示为"名次/班级人数"，未排名时名次位置显示占位符"""
    position = str(rank) if rank is not None else UNRANKED_PLACEHOLDER
    return f"{position}/{class_size}"
