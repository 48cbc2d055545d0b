"""
roomcore/engine/state_machine.py

状态转换表 - 以数据定义合法转换，其他组件只查询、不重复推导规则
"""
from typing import Any, Callable, Dict, FrozenSet, Iterable, List, Mapping, Optional
from dataclasses import dataclass, field
import logging

from roomcore.engine.errors import IllegalTransition

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StateTransition:
    """
    状态转换定义

    Attributes:
        from_state: 源状态
        to_state: 目标状态
        trigger: 触发动作（可选，仅用于日志）
    """

    from_state: Any
    to_state: Any
    trigger: str = ""


@dataclass
class StateMachineConfig:
    """
    状态机配置

    Attributes:
        name: 状态机名称
        states: 所有状态的列表
        transitions: 转换列表
    """

    name: str
    states: List[Any]
    transitions: List[StateTransition] = field(default_factory=list)


class TransitionTable:
    """
    状态转换表

    特性：
    - 纯查询，无副作用
    - 未知状态失败关闭（返回空集合）
    - 自身到自身的转换永远不合法

    Example:
        >>> table = TransitionTable.from_mapping("Door", {"open": ["closed"], "closed": ["open"]})
        >>> table.is_legal("open", "closed")
        True
        >>> table.allowed("ajar")
        frozenset()
    """

    def __init__(self, config: StateMachineConfig, coerce: Optional[Callable[[Any], Any]] = None):
        self._config = config
        self._coerce = coerce
        self._allowed: Dict[Any, FrozenSet[Any]] = {}

        adjacency: Dict[Any, set] = {state: set() for state in config.states}
        for t in config.transitions:
            if t.from_state not in adjacency or t.to_state not in adjacency:
                raise ValueError(
                    f"{config.name}: transition {t.from_state} -> {t.to_state} uses an undeclared state"
                )
            if t.from_state == t.to_state:
                raise ValueError(f"{config.name}: self transition on {t.from_state} is not allowed")
            adjacency[t.from_state].add(t.to_state)

        self._allowed = {state: frozenset(targets) for state, targets in adjacency.items()}

    @classmethod
    def from_mapping(
        cls,
        name: str,
        mapping: Mapping[Any, Iterable[Any]],
        coerce: Optional[Callable[[Any], Any]] = None,
    ) -> "TransitionTable":
        """从 {源状态: [目标状态, ...]} 映射构建"""
        transitions = [
            StateTransition(from_state=source, to_state=target)
            for source, targets in mapping.items()
            for target in targets
        ]
        return cls(StateMachineConfig(name=name, states=list(mapping), transitions=transitions), coerce)

    @property
    def name(self) -> str:
        return self._config.name

    @property
    def states(self) -> List[Any]:
        return list(self._config.states)

    def _normalize(self, state: Any) -> Any:
        if self._coerce is None:
            return state
        try:
            return self._coerce(state)
        except (ValueError, TypeError):
            return None

    def allowed(self, current: Any) -> FrozenSet[Any]:
        """获取当前状态的合法后继集合，未知状态返回空集合"""
        key = self._normalize(current)
        if key is None:
            return frozenset()
        try:
            return self._allowed.get(key, frozenset())
        except TypeError:
            return frozenset()

    def is_legal(self, from_state: Any, to_state: Any) -> bool:
        """检查转换是否合法"""
        target = self._normalize(to_state)
        if target is None:
            return False
        return target in self.allowed(from_state)

    def validate(self, from_state: Any, to_state: Any, subject: Optional[str] = None) -> None:
        """
        校验转换

        Raises:
            IllegalTransition: 转换不在表中
        """
        if not self.is_legal(from_state, to_state):
            logger.warning(
                f"Invalid transition: {self._config.name} {subject or ''} {from_state} -> {to_state}"
            )
            raise IllegalTransition(from_state, to_state, subject)


__all__ = [
    "StateTransition",
    "StateMachineConfig",
    "TransitionTable",
]
