# 学校数据服务：持有应用状态，所有修改通过update()原子提交并持久化
import logging
import random
import uuid
from typing import Callable, Dict, Any, Iterable, List, Optional, TypeVar

from ..schemas.entities import (
    SchoolState, Student, Subject, GradingPeriod, Grade,
    MentionRule, AppreciationRule, SchoolSettings, DemoNamePool
)
from ..calculation.grading_config import GradingConfig
from ..serialization.state_serializer import (
    load_state_document, parse_import, export_state, export_state_json
)
from .state_store import StateStore, MemoryStateStore

logger = logging.getLogger(__name__)

T = TypeVar('T')


class EntityNotFoundError(KeyError):
    """引用的实体不存在"""

    def __init__(self, entity: str, entity_id: str):
        super().__init__(f"{entity}不存在: {entity_id}")
        self.entity = entity
        self.entity_id = entity_id

    def __str__(self):
        return self.args[0]


class GradeValueError(ValueError):
    """分数超出评分量表范围"""
    pass


def _new_id() -> str:
    return uuid.uuid4().hex[:12]


def _find(items: List[Any], item_id: str, entity: str) -> int:
    for index, item in enumerate(items):
        if item.id == item_id:
            return index
    raise EntityNotFoundError(entity, item_id)


def _sort_mention_rules(rules: List[MentionRule]) -> List[MentionRule]:
    return sorted(rules, key=lambda r: r.min_average, reverse=True)


def _sort_appreciation_rules(rules: List[AppreciationRule]) -> List[AppreciationRule]:
    return sorted(rules, key=lambda r: r.min)


class SchoolDataService:
    """
    应用状态仓库

    - state属性返回快照副本，调用方的修改不会影响内部状态
    - update(mutator)在副本上执行修改，重新验证后先持久化再替换；
      mutator、验证或保存任一步失败时，原状态保持不变
    - 计算器从不访问本服务，只接收其快照数据
    """

    def __init__(self, store: Optional[StateStore] = None):
        self.store = store or MemoryStateStore()
        self._state = GradingConfig.default_state()

    # ---- 状态读写 ----

    @property
    def state(self) -> SchoolState:
        return self._state.model_copy(deep=True)

    def load(self) -> SchoolState:
        """从存储加载状态，执行一次版本迁移；没有保存的文档时使用默认状态"""
        document = self.store.load()
        if document is None:
            self._state = GradingConfig.default_state()
        else:
            self._state = load_state_document(document)
        logger.info(
            f"状态已加载: {len(self._state.students)}名学生, {len(self._state.subjects)}个科目, "
            f"{len(self._state.grades)}条成绩, {len(self._state.periods)}个周期"
        )
        return self.state

    def update(self, mutator: Callable[[SchoolState], T]) -> T:
        """原子地修改状态并持久化，返回mutator的返回值"""
        draft = self._state.model_copy(deep=True)
        result = mutator(draft)
        new_state = SchoolState.model_validate(draft.model_dump())
        self.store.save(new_state.to_json_dict())
        self._state = new_state
        return result

    def _replace(self, new_state: SchoolState) -> None:
        def mutator(state: SchoolState) -> None:
            for field_name in SchoolState.model_fields:
                setattr(state, field_name, getattr(new_state, field_name))
        self.update(mutator)

    # ---- 学生 ----

    def add_student(self, student_data: Dict[str, Any]) -> Student:
        student = Student.model_validate({'id': _new_id(), **student_data})

        def mutator(state: SchoolState) -> Student:
            if any(s.id == student.id for s in state.students):
                raise ValueError(f"学生ID重复: {student.id}")
            state.students.append(student)
            return student

        created = self.update(mutator)
        logger.info(f"新增学生: {created.full_name} ({created.id})")
        return created

    def update_student(self, student_id: str, changes: Dict[str, Any]) -> Student:
        def mutator(state: SchoolState) -> Student:
            index = _find(state.students, student_id, "学生")
            merged = {**state.students[index].model_dump(), **changes, 'id': student_id}
            state.students[index] = Student.model_validate(merged)
            return state.students[index]

        return self.update(mutator)

    def delete_student(self, student_id: str) -> int:
        """删除学生及其全部成绩，返回删除的成绩数"""
        def mutator(state: SchoolState) -> int:
            index = _find(state.students, student_id, "学生")
            del state.students[index]
            before = len(state.grades)
            state.grades = [g for g in state.grades if g.student_id != student_id]
            return before - len(state.grades)

        removed = self.update(mutator)
        logger.info(f"已删除学生 {student_id}，同时删除{removed}条成绩")
        return removed

    def generate_demo_students(self, count: int, class_name: str = "",
                               seed: Optional[int] = None) -> List[Student]:
        """按姓名池随机生成演示学生(不保存)，按姓排序"""
        if count < 0:
            raise ValueError("学生数量不能为负数")
        pool: DemoNamePool = self._state.demo_names
        if not pool.last_names or not (pool.first_names_male or pool.first_names_female):
            raise ValueError("演示姓名池为空")

        rng = random.Random(seed)
        students = []
        for _ in range(count):
            genders = [g for g, names in (('M', pool.first_names_male), ('F', pool.first_names_female)) if names]
            gender = rng.choice(genders)
            first_names = pool.first_names_male if gender == 'M' else pool.first_names_female
            students.append(Student(
                id=_new_id(),
                first_name=rng.choice(first_names),
                last_name=rng.choice(pool.last_names),
                gender=gender,
                class_name=class_name
            ))
        return sorted(students, key=lambda s: (s.last_name, s.first_name))

    def set_demo_names(self, pool: DemoNamePool) -> None:
        def mutator(state: SchoolState) -> None:
            state.demo_names = pool

        self.update(mutator)

    # ---- 科目 ----

    def add_subject(self, subject_data: Dict[str, Any]) -> Subject:
        subject = Subject.model_validate({'id': _new_id(), **subject_data})

        def mutator(state: SchoolState) -> Subject:
            if any(s.id == subject.id for s in state.subjects):
                raise ValueError(f"科目ID重复: {subject.id}")
            state.subjects.append(subject)
            return subject

        created = self.update(mutator)
        logger.info(f"新增科目: {created.name} (系数{created.coefficient})")
        return created

    def update_subject(self, subject_id: str, changes: Dict[str, Any]) -> Subject:
        def mutator(state: SchoolState) -> Subject:
            index = _find(state.subjects, subject_id, "科目")
            merged = {**state.subjects[index].model_dump(), **changes, 'id': subject_id}
            state.subjects[index] = Subject.model_validate(merged)
            return state.subjects[index]

        return self.update(mutator)

    def delete_subject(self, subject_id: str) -> int:
        """删除科目及其全部成绩，返回删除的成绩数"""
        def mutator(state: SchoolState) -> int:
            index = _find(state.subjects, subject_id, "科目")
            del state.subjects[index]
            before = len(state.grades)
            state.grades = [g for g in state.grades if g.subject_id != subject_id]
            return before - len(state.grades)

        removed = self.update(mutator)
        logger.info(f"已删除科目 {subject_id}，同时删除{removed}条成绩")
        return removed

    # ---- 周期 ----

    def add_period(self, period_data: Dict[str, Any]) -> GradingPeriod:
        def mutator(state: SchoolState) -> GradingPeriod:
            data = {'id': _new_id(), 'order': len(state.periods) + 1, **period_data}
            period = GradingPeriod.model_validate(data)
            if any(p.id == period.id for p in state.periods):
                raise ValueError(f"周期ID重复: {period.id}")
            state.periods.append(period)
            state.periods.sort(key=lambda p: p.order)
            if state.active_period_id is None:
                state.active_period_id = period.id
            return period

        return self.update(mutator)

    def update_period(self, period_id: str, changes: Dict[str, Any]) -> GradingPeriod:
        def mutator(state: SchoolState) -> GradingPeriod:
            index = _find(state.periods, period_id, "周期")
            merged = {**state.periods[index].model_dump(), **changes, 'id': period_id}
            period = GradingPeriod.model_validate(merged)
            state.periods[index] = period
            state.periods.sort(key=lambda p: p.order)
            return period

        return self.update(mutator)

    def delete_period(self, period_id: str) -> int:
        """删除周期及其全部成绩；删除的是当前周期时切换到第一个剩余周期"""
        def mutator(state: SchoolState) -> int:
            index = _find(state.periods, period_id, "周期")
            del state.periods[index]
            before = len(state.grades)
            state.grades = [g for g in state.grades if g.period_id != period_id]
            if state.active_period_id == period_id:
                state.active_period_id = state.periods[0].id if state.periods else None
            return before - len(state.grades)

        removed = self.update(mutator)
        logger.info(f"已删除周期 {period_id}，同时删除{removed}条成绩")
        return removed

    def set_active_period(self, period_id: str) -> None:
        def mutator(state: SchoolState) -> None:
            _find(state.periods, period_id, "周期")
            state.active_period_id = period_id

        self.update(mutator)

    # ---- 成绩 ----

    @staticmethod
    def _apply_grade(state: SchoolState, student_id: str, subject_id: str,
                     period_id: str, value: Optional[float]) -> Grade:
        _find(state.students, student_id, "学生")
        _find(state.subjects, subject_id, "科目")
        _find(state.periods, period_id, "周期")

        if value is not None:
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise GradeValueError(f"分数必须是数字: {value!r}")
            scale = state.settings.grading_scale
            if not scale.contains(value):
                raise GradeValueError(
                    f"分数{value}超出范围[{scale.note_min}, {scale.note_max}]"
                )
            value = float(value)

        grade = Grade(student_id=student_id, subject_id=subject_id, period_id=period_id, value=value)
        # 同一(学生, 科目, 周期)最后写入者生效
        state.grades = [g for g in state.grades if g.key != grade.key]
        state.grades.append(grade)
        return grade

    def set_grade(self, student_id: str, subject_id: str, period_id: str,
                  value: Optional[float]) -> Grade:
        """写入一条成绩；value为None表示尚未评分"""
        def mutator(state: SchoolState) -> Grade:
            return self._apply_grade(state, student_id, subject_id, period_id, value)

        return self.update(mutator)

    def bulk_set_grades(self, entries: Iterable[Dict[str, Any]]) -> int:
        """
        批量写入成绩，全部成功或全部不生效

        Args:
            entries: [{'student_id', 'subject_id', 'period_id', 'value'}, ...]
        """
        entries = list(entries)

        def mutator(state: SchoolState) -> int:
            for entry in entries:
                self._apply_grade(
                    state, entry['student_id'], entry['subject_id'],
                    entry['period_id'], entry.get('value')
                )
            return len(entries)

        count = self.update(mutator)
        logger.info(f"批量写入{count}条成绩")
        return count

    def clear_grade(self, student_id: str, subject_id: str, period_id: str) -> bool:
        """删除一条成绩记录，不存在时返回False"""
        key = (student_id, subject_id, period_id)

        def mutator(state: SchoolState) -> bool:
            before = len(state.grades)
            state.grades = [g for g in state.grades if g.key != key]
            return len(state.grades) != before

        return self.update(mutator)

    # ---- 评语等级规则 ----

    def add_mention_rule(self, rule_data: Dict[str, Any]) -> MentionRule:
        rule = MentionRule.model_validate({'id': _new_id(), **rule_data})

        def mutator(state: SchoolState) -> MentionRule:
            state.mention_rules = _sort_mention_rules(state.mention_rules + [rule])
            return rule

        return self.update(mutator)

    def update_mention_rule(self, rule_id: str, changes: Dict[str, Any]) -> MentionRule:
        def mutator(state: SchoolState) -> MentionRule:
            index = _find(state.mention_rules, rule_id, "评语等级")
            rule = MentionRule.model_validate({**state.mention_rules[index].model_dump(), **changes, 'id': rule_id})
            state.mention_rules[index] = rule
            state.mention_rules = _sort_mention_rules(state.mention_rules)
            return rule

        return self.update(mutator)

    def delete_mention_rule(self, rule_id: str) -> None:
        def mutator(state: SchoolState) -> None:
            del state.mention_rules[_find(state.mention_rules, rule_id, "评语等级")]

        self.update(mutator)

    def set_mention_rules(self, rules: List[MentionRule]) -> None:
        def mutator(state: SchoolState) -> None:
            state.mention_rules = _sort_mention_rules(rules)

        self.update(mutator)

    # ---- 评价区间规则 ----

    def add_appreciation_rule(self, rule_data: Dict[str, Any]) -> AppreciationRule:
        rule = AppreciationRule.model_validate({'id': _new_id(), **rule_data})

        def mutator(state: SchoolState) -> AppreciationRule:
            state.appreciation_rules = _sort_appreciation_rules(state.appreciation_rules + [rule])
            return rule

        return self.update(mutator)

    def update_appreciation_rule(self, rule_id: str, changes: Dict[str, Any]) -> AppreciationRule:
        def mutator(state: SchoolState) -> AppreciationRule:
            index = _find(state.appreciation_rules, rule_id, "评价区间")
            rule = AppreciationRule.model_validate(
                {**state.appreciation_rules[index].model_dump(), **changes, 'id': rule_id}
            )
            state.appreciation_rules[index] = rule
            state.appreciation_rules = _sort_appreciation_rules(state.appreciation_rules)
            return rule

        return self.update(mutator)

    def delete_appreciation_rule(self, rule_id: str) -> None:
        def mutator(state: SchoolState) -> None:
            del state.appreciation_rules[_find(state.appreciation_rules, rule_id, "评价区间")]

        self.update(mutator)

    def set_appreciation_rules(self, rules: List[AppreciationRule]) -> None:
        def mutator(state: SchoolState) -> None:
            state.appreciation_rules = _sort_appreciation_rules(rules)

        self.update(mutator)

    # ---- 科目分类 ----

    def add_category(self, name: str) -> bool:
        """新增分类，已存在时不做修改并返回False"""
        if name in self._state.categories:
            return False

        def mutator(state: SchoolState) -> bool:
            state.categories.append(name)
            return True

        return self.update(mutator)

    def rename_category(self, old_name: str, new_name: str) -> None:
        """重命名分类，并同步到使用该分类的科目"""
        def mutator(state: SchoolState) -> None:
            if old_name not in state.categories:
                raise EntityNotFoundError("分类", old_name)
            if new_name != old_name and new_name in state.categories:
                raise ValueError(f"分类已存在: {new_name}")
            state.categories = [new_name if c == old_name else c for c in state.categories]
            for subject in state.subjects:
                if subject.category == old_name:
                    subject.category = new_name

        self.update(mutator)

    def delete_category(self, name: str) -> None:
        """删除分类，使用该分类的科目归入默认分类"""
        fallback = GradingConfig.FALLBACK_CATEGORY
        if name == fallback:
            raise ValueError(f"不能删除默认分类: {fallback}")

        def mutator(state: SchoolState) -> None:
            if name not in state.categories:
                raise EntityNotFoundError("分类", name)
            state.categories = [c for c in state.categories if c != name]
            if fallback not in state.categories:
                state.categories.append(fallback)
            for subject in state.subjects:
                if subject.category == name:
                    subject.category = fallback

        self.update(mutator)

    # ---- 设置 ----

    def update_settings(self, changes: Dict[str, Any]) -> SchoolSettings:
        """
        更新设置；修改量表时已保存的成绩必须仍在新量表范围内

        Raises:
            GradeValueError: 新量表会使已有成绩超出范围
        """
        def mutator(state: SchoolState) -> SchoolSettings:
            merged = {**state.settings.model_dump(), **changes}
            settings = SchoolSettings.model_validate(merged)
            scale = settings.grading_scale
            out_of_range = [
                g for g in state.grades
                if g.value is not None and not scale.contains(g.value)
            ]
            if out_of_range:
                raise GradeValueError(
                    f"新量表[{scale.note_min}, {scale.note_max}]会使{len(out_of_range)}条成绩超出范围"
                )
            state.settings = settings
            return settings

        return self.update(mutator)

    # ---- 导出/导入 ----

    def export_document(self) -> Dict[str, Any]:
        return export_state(self._state)

    def export_json(self) -> str:
        return export_state_json(self._state)

    def import_json(self, text: str) -> SchoolState:
        """
        整体替换导入

        Raises:
            ImportValidationError: 文档无效，当前状态不变
        """
        imported = parse_import(text)
        self._replace(imported)
        logger.info("导入完成，已替换全部数据")
        return self.state
