# 评分配置：默认规则表、默认科目与周期、成绩单评语模板
import logging
from typing import Dict, Any, List, Optional

from ..schemas.entities import (
    Subject, GradingPeriod, MentionRule, AppreciationRule,
    SchoolSettings, DemoNamePool, SchoolState, GradingScale
)

logger = logging.getLogger(__name__)


class GradingConfig:
    """评分配置类"""

    # 默认科目（系数为跨科目平均分权重）
    DEFAULT_SUBJECTS = [
        {'id': 's1', 'name': 'Mathématiques', 'coefficient': 4, 'color': '#4169E1', 'category': 'Sciences'},
        {'id': 's2', 'name': 'Français', 'coefficient': 4, 'color': '#DC143C', 'category': 'Langues'},
        {'id': 's3', 'name': 'PCT', 'coefficient': 2, 'color': '#28A745', 'category': 'Sciences'},
        {'id': 's4', 'name': 'Histoire-Géo', 'coefficient': 2, 'color': '#FF8C00', 'category': 'Humanités'},
        {'id': 's5', 'name': 'Anglais', 'coefficient': 2, 'color': '#9B59B6', 'category': 'Langues'},
        {'id': 's6', 'name': 'Éducation Civique', 'coefficient': 1, 'color': '#1ABC9C', 'category': 'Humanités'},
        {'id': 's7', 'name': 'EPS', 'coefficient': 1, 'color': '#E74C3C', 'category': 'Sport'},
        {'id': 's8', 'name': 'Arts Plastiques', 'coefficient': 1, 'color': '#FF69B4', 'category': 'Arts'},
    ]

    DEFAULT_PERIODS = [
        {'id': 'p1', 'name': 'Trimestre 1', 'order': 1, 'type': 'trimestre',
         'start_date': '2024-09-01', 'end_date': '2024-12-15'},
        {'id': 'p2', 'name': 'Trimestre 2', 'order': 2, 'type': 'trimestre',
         'start_date': '2025-01-06', 'end_date': '2025-03-15'},
        {'id': 'p3', 'name': 'Trimestre 3', 'order': 3, 'type': 'trimestre',
         'start_date': '2025-03-31', 'end_date': '2025-06-30'},
    ]

    DEFAULT_SETTINGS = {
        'school_name': 'Les Bulles de Joie',
        'school_address': 'Cotonou, Bénin',
        'annee_scolaire': '2024-2025',
        'note_min': 0,
        'note_max': 20,
        'note_decimal_places': 2,
    }

    # 评价区间（闭区间，按下限升序）
    DEFAULT_APPRECIATION_RULES = [
        {'id': 'a1', 'min': 0, 'max': 9.99, 'label': 'Insuffisant', 'color': '#DC143C'},
        {'id': 'a2', 'min': 10, 'max': 13.99, 'label': 'Peu satisfaisant', 'color': '#FF8C00'},
        {'id': 'a3', 'min': 14, 'max': 16.99, 'label': 'Satisfaisant', 'color': '#4169E1'},
        {'id': 'a4', 'min': 17, 'max': 20, 'label': 'Très satisfaisant', 'color': '#28A745'},
    ]

    # 评语等级（按门槛降序）
    DEFAULT_MENTION_RULES = [
        {'id': 'm1', 'min_average': 16, 'label': "TABLEAU D'HONNEUR", 'emoji': '🏆', 'color': '#FFD700'},
        {'id': 'm2', 'min_average': 14, 'label': 'FÉLICITATIONS', 'emoji': '⭐', 'color': '#FF69B4'},
        {'id': 'm3', 'min_average': 12, 'label': 'ENCOURAGEMENTS', 'emoji': '👏', 'color': '#4169E1'},
        {'id': 'm4', 'min_average': 10, 'label': 'PASSABLE', 'emoji': '📝', 'color': '#28A745'},
        {'id': 'm5', 'min_average': 0, 'label': 'INSUFFISANT', 'emoji': '⚠️', 'color': '#DC143C'},
    ]

    DEFAULT_CATEGORIES = ['Sciences', 'Langues', 'Humanités', 'Arts', 'Sport', 'Technique', 'Autre']

    # 删除分类后科目归入的分类
    FALLBACK_CATEGORY = 'Autre'

    DEFAULT_DEMO_NAMES = {
        'first_names_male': [
            'Koffi', 'Codjo', 'Dossa', 'Agossou', 'Sènan', 'Zinsou', 'Kokou',
            'Firmin', 'Landry', 'Parfait', 'Moïse', 'Crépin', 'Wilfried', 'Comlan',
        ],
        'first_names_female': [
            'Akouavi', 'Adjovi', 'Ayaba', 'Sessimè', 'Amavi', 'Houéfa', 'Ablavi',
            'Fifamè', 'Pélagie', 'Solange', 'Rosine', 'Estelle', 'Grâce', 'Flore',
        ],
        'last_names': [
            'Ahouandjinou', 'Hounkonnou', 'Agbossou', 'Kpossou', 'Adjadi', 'Dossou',
            'Houngbédji', 'Gnansounou', 'Togbé', 'Hounsou', 'Gandonou', 'Soglo',
            'Quénum', 'Kakpo', 'Zannou', 'Amoussou', 'Gbaguidi', 'Assogba',
        ],
    }

    # 成绩单评语模板门槛（基于量表比例，0-20分制下对应16/14/12/10）
    NARRATIVE_THRESHOLDS = {
        'excellent': 0.80,
        'very_good': 0.70,
        'good': 0.60,
        'pass': 0.50,
        'insufficient': 0.00
    }

    NARRATIVE_TEMPLATES = {
        'excellent': "Excellent travail {name} ! Tes résultats sont remarquables. "
                     "Continue ainsi et maintiens ce niveau d'excellence. Félicitations !",
        'very_good': "Très bon travail {name}. Tes efforts sont récompensés par de très bons résultats. "
                     "Continue sur cette lancée !",
        'good': "Bon travail {name}. Tes résultats sont satisfaisants. "
                "Quelques efforts supplémentaires te permettront d'atteindre l'excellence.",
        'pass': "Résultats passables {name}. Un travail plus régulier et une meilleure concentration "
                "en classe sont nécessaires pour progresser.",
        'insufficient': "{name}, tes résultats sont insuffisants. Un effort important est attendu pour "
                        "la prochaine période. Ne te décourage pas et travaille régulièrement."
    }

    # 评价规则为空时的占位结果
    UNEVALUATED_LABEL = 'Non évalué'
    UNEVALUATED_COLOR = '#999999'

    @classmethod
    def get_narrative_level(cls, average: float, scale: GradingScale) -> str:
        """根据平均分在量表上的比例确定评语等级"""
        ratio = scale.ratio(average)
        # 门槛按降序检查
        for level, threshold in sorted(cls.NARRATIVE_THRESHOLDS.items(), key=lambda x: x[1], reverse=True):
            if ratio >= threshold:
                return level
        return 'insufficient'

    @classmethod
    def generate_narrative(cls, average: Optional[float], first_name: str,
                           scale: Optional[GradingScale] = None) -> Optional[str]:
        """生成成绩单评语句子，无平均分时返回None"""
        if average is None:
            return None
        level = cls.get_narrative_level(average, scale or GradingScale())
        return cls.NARRATIVE_TEMPLATES[level].format(name=first_name)

    @classmethod
    def default_subjects(cls) -> List[Subject]:
        return [Subject(**item) for item in cls.DEFAULT_SUBJECTS]

    @classmethod
    def default_periods(cls) -> List[GradingPeriod]:
        return [GradingPeriod(**item) for item in cls.DEFAULT_PERIODS]

    @classmethod
    def default_settings(cls) -> SchoolSettings:
        return SchoolSettings(**cls.DEFAULT_SETTINGS)

    @classmethod
    def default_mention_rules(cls) -> List[MentionRule]:
        return [MentionRule(**item) for item in cls.DEFAULT_MENTION_RULES]

    @classmethod
    def default_appreciation_rules(cls) -> List[AppreciationRule]:
        return [AppreciationRule(**item) for item in cls.DEFAULT_APPRECIATION_RULES]

    @classmethod
    def default_demo_names(cls) -> DemoNamePool:
        return DemoNamePool(**cls.DEFAULT_DEMO_NAMES)

    @classmethod
    def default_state(cls) -> SchoolState:
        """首次启动时的应用状态"""
        return SchoolState(
            students=[],
            subjects=cls.default_subjects(),
            grades=[],
            periods=cls.default_periods(),
            settings=cls.default_settings(),
            active_period_id=cls.DEFAULT_PERIODS[0]['id'],
            appreciation_rules=cls.default_appreciation_rules(),
            mention_rules=cls.default_mention_rules(),
            categories=list(cls.DEFAULT_CATEGORIES),
            demo_names=cls.default_demo_names()
        )

    @classmethod
    def default_state_document(cls) -> Dict[str, Any]:
        """默认状态的JSON文档形式（camelCase键）"""
        return cls.default_state().to_json_dict()
