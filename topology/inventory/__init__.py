"""
topology/inventory - AWS 리소스 인벤토리

리전 x 서비스 단위로 10종의 리소스를 병렬 수집해 Resource 목록으로 반환합니다.
관계 탐색 엔진의 입력을 공급하는 외부 협력자 역할입니다.
"""

from .collector import InventoryCollector
from .helpers import STATUS_MAPS, application_of, map_status, parse_tags
from .services import SERVICE_COLLECTORS
from .store import filter_by_application, load_inventory, save_inventory

__all__: list[str] = [
    "InventoryCollector",
    "SERVICE_COLLECTORS",
    "STATUS_MAPS",
    "application_of",
    "filter_by_application",
    "load_inventory",
    "map_status",
    "parse_tags",
    "save_inventory",
]
