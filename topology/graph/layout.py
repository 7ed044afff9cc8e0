"""
topology/graph/layout.py - 힘 기반(force-directed) 레이아웃

호출 스레드에서 한 스텝씩 진행하는 단일 스레드 시뮬레이션입니다.

힘 구성:
    - link: 연결된 노드 사이 거리를 link_distance(100)로 유지
    - charge: 모든 노드 쌍 반발력 (strength -300)
    - center: 무게 중심을 (width/2, height/2)로 이동
    - collide: 노드 반경 + 여백(30) 안으로 겹치지 않게 밀어냄

초기 배치는 phyllotaxis(해바라기 배열)라 같은 입력이면 항상 같은 레이아웃이 나옵니다.
pin/drag로 고정한 노드는 위치 갱신에서 제외되지만 이웃 노드에는 계속 힘을 줍니다.

Example:
    sim = ForceSimulation(["a", "b", "c"], [("a", "b"), ("b", "c")])
    sim.pin("a", 100.0, 100.0)
    sim.run()
    positions = sim.positions()
"""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable
from dataclasses import dataclass

logger = logging.getLogger(__name__)

NODE_RADIUS = 20.0
COLLIDE_RADIUS = 30.0
LINK_DISTANCE = 100.0
CHARGE_STRENGTH = -300.0

_INITIAL_RADIUS = 10.0
_INITIAL_ANGLE = math.pi * (3 - math.sqrt(5))


@dataclass
class SimNode:
    """시뮬레이션 노드 상태 (fx/fy가 있으면 고정)"""

    id: str
    x: float = 0.0
    y: float = 0.0
    vx: float = 0.0
    vy: float = 0.0
    fx: float | None = None
    fy: float | None = None

    @property
    def pinned(self) -> bool:
        return self.fx is not None and self.fy is not None


class ForceSimulation:
    """force-directed 레이아웃 시뮬레이션

    Args:
        node_ids: 노드 ID (순서가 초기 배치를 결정)
        links: (source_id, target_id) 목록. 알 수 없는 ID는 무시
        width / height: 캔버스 크기 (중심 = width/2, height/2)
        alpha_min: 이 값보다 alpha가 작아지면 안정 상태로 간주
        energy_threshold: 노드당 평균 운동 에너지가 이보다 작으면 안정 상태로 간주
    """

    def __init__(
        self,
        node_ids: Iterable[str],
        links: Iterable[tuple[str, str]] = (),
        width: float = 960.0,
        height: float = 600.0,
        *,
        link_distance: float = LINK_DISTANCE,
        charge_strength: float = CHARGE_STRENGTH,
        collide_radius: float = COLLIDE_RADIUS,
        alpha_min: float = 0.001,
        velocity_decay: float = 0.4,
        energy_threshold: float = 1e-4,
    ):
        self.width = width
        self.height = height
        self.link_distance = link_distance
        self.charge_strength = charge_strength
        self.collide_radius = collide_radius
        self.alpha = 1.0
        self.alpha_min = alpha_min
        self.alpha_target = 0.0
        self.alpha_decay = 1 - alpha_min ** (1 / 300)
        self.velocity_decay = velocity_decay
        self.energy_threshold = energy_threshold
        self.tick_count = 0

        self.nodes: list[SimNode] = []
        self._index: dict[str, int] = {}
        for node_id in node_ids:
            if node_id in self._index:
                continue
            self._index[node_id] = len(self.nodes)
            self.nodes.append(SimNode(node_id))
        self._place_initial()

        self.links: list[tuple[int, int]] = []
        for source, target in links:
            if source in self._index and target in self._index and source != target:
                self.links.append((self._index[source], self._index[target]))
        self._prepare_links()

    # -------------------------------------------------------------------------
    # 초기화
    # -------------------------------------------------------------------------

    def _place_initial(self) -> None:
        cx, cy = self.width / 2, self.height / 2
        for i, node in enumerate(self.nodes):
            radius = _INITIAL_RADIUS * math.sqrt(0.5 + i)
            angle = i * _INITIAL_ANGLE
            node.x = cx + radius * math.cos(angle)
            node.y = cy + radius * math.sin(angle)

    def _prepare_links(self) -> None:
        degree = [0] * len(self.nodes)
        for s, t in self.links:
            degree[s] += 1
            degree[t] += 1
        self._link_strength = [1 / min(degree[s], degree[t]) for s, t in self.links]
        self._link_bias = [degree[s] / (degree[s] + degree[t]) for s, t in self.links]

    # -------------------------------------------------------------------------
    # 고정 / 드래그
    # -------------------------------------------------------------------------

    def _node(self, node_id: str) -> SimNode:
        try:
            return self.nodes[self._index[node_id]]
        except KeyError:
            raise KeyError(f"알 수 없는 노드: {node_id}") from None

    def pin(self, node_id: str, x: float, y: float) -> None:
        """노드를 (x, y)에 고정"""
        node = self._node(node_id)
        node.fx, node.fy = x, y
        node.x, node.y = x, y
        node.vx = node.vy = 0.0

    def drag(self, node_id: str, x: float, y: float) -> None:
        """드래그 중: 노드를 포인터 위치에 고정하고 시뮬레이션을 다시 데움"""
        self.pin(node_id, x, y)
        self.alpha_target = 0.3
        self.alpha = max(self.alpha, self.alpha_min * 10)

    def release(self, node_id: str) -> None:
        """고정 해제 (자동 배치 재개)"""
        node = self._node(node_id)
        node.fx = node.fy = None
        self.alpha_target = 0.0

    # -------------------------------------------------------------------------
    # 진행
    # -------------------------------------------------------------------------

    @property
    def kinetic_energy(self) -> float:
        """노드당 평균 운동 에너지"""
        if not self.nodes:
            return 0.0
        return sum(n.vx * n.vx + n.vy * n.vy for n in self.nodes) / len(self.nodes)

    @property
    def stable(self) -> bool:
        return self.alpha < self.alpha_min or (self.tick_count > 0 and self.kinetic_energy < self.energy_threshold)

    def tick(self) -> None:
        """한 스텝 진행"""
        self.alpha += (self.alpha_target - self.alpha) * self.alpha_decay
        self._apply_links()
        self._apply_charge()
        self._apply_collide()
        self._apply_center()

        for node in self.nodes:
            if node.pinned:
                node.x, node.y = node.fx, node.fy  # type: ignore[assignment]
                node.vx = node.vy = 0.0
                continue
            node.vx *= 1 - self.velocity_decay
            node.vy *= 1 - self.velocity_decay
            node.x += node.vx
            node.y += node.vy

        self.tick_count += 1

    def run(self, max_ticks: int = 300) -> int:
        """안정 상태 또는 max_ticks까지 진행 (진행한 tick 수 반환)"""
        ticks = 0
        while ticks < max_ticks and not (ticks > 0 and self.stable):
            self.tick()
            ticks += 1
        logger.debug(f"레이아웃 계산: 노드 {len(self.nodes)}개, {ticks} ticks, alpha={self.alpha:.4f}")
        return ticks

    def positions(self) -> dict[str, tuple[float, float]]:
        return {n.id: (n.x, n.y) for n in self.nodes}

    # -------------------------------------------------------------------------
    # 힘
    # -------------------------------------------------------------------------

    @staticmethod
    def _jiggle(i: int) -> float:
        # 두 노드가 같은 위치일 때 방향을 정하기 위한 결정적 미세값
        return ((i % 7) + 1) * 1e-6

    def _apply_links(self) -> None:
        for k, (s, t) in enumerate(self.links):
            source, target = self.nodes[s], self.nodes[t]
            x = target.x + target.vx - source.x - source.vx or self._jiggle(k)
            y = target.y + target.vy - source.y - source.vy or self._jiggle(k + 1)
            distance = math.sqrt(x * x + y * y)
            factor = (distance - self.link_distance) / distance * self.alpha * self._link_strength[k]
            x *= factor
            y *= factor
            bias = self._link_bias[k]
            target.vx -= x * bias
            target.vy -= y * bias
            source.vx += x * (1 - bias)
            source.vy += y * (1 - bias)

    def _apply_charge(self) -> None:
        strength = self.charge_strength * self.alpha
        for i, node in enumerate(self.nodes):
            for j, other in enumerate(self.nodes):
                if i == j:
                    continue
                x = other.x - node.x or self._jiggle(i + j)
                y = other.y - node.y or self._jiggle(i * j + 1)
                dist2 = max(x * x + y * y, 1.0)
                weight = strength / dist2
                node.vx += x * weight
                node.vy += y * weight

    def _apply_collide(self) -> None:
        min_distance = self.collide_radius * 2
        for i in range(len(self.nodes)):
            a = self.nodes[i]
            for j in range(i + 1, len(self.nodes)):
                b = self.nodes[j]
                x = a.x + a.vx - b.x - b.vx or self._jiggle(i + j)
                y = a.y + a.vy - b.y - b.vy or self._jiggle(i + j + 1)
                distance = math.sqrt(x * x + y * y)
                if distance >= min_distance:
                    continue
                push = (min_distance - distance) / distance * 0.5
                a.vx += x * push * 0.5
                a.vy += y * push * 0.5
                b.vx -= x * push * 0.5
                b.vy -= y * push * 0.5

    def _apply_center(self) -> None:
        if not self.nodes:
            return
        shift_x = sum(n.x for n in self.nodes) / len(self.nodes) - self.width / 2
        shift_y = sum(n.y for n in self.nodes) / len(self.nodes) - self.height / 2
        for node in self.nodes:
            if node.pinned:
                continue
            node.x -= shift_x
            node.y -= shift_y


def compute_layout(
    node_ids: Iterable[str],
    links: Iterable[tuple[str, str]],
    width: float = 960.0,
    height: float = 600.0,
    pinned: dict[str, tuple[float, float]] | None = None,
    max_ticks: int = 300,
) -> dict[str, tuple[float, float]]:
    """레이아웃 계산 편의 함수"""
    simulation = ForceSimulation(node_ids, links, width, height)
    for node_id, (x, y) in (pinned or {}).items():
        simulation.pin(node_id, x, y)
    simulation.run(max_ticks)
    return simulation.positions()
