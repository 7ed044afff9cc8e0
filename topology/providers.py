"""
topology/providers.py - 관계 탐색용 AWS 조회

추출기(extractor)가 필요로 하는 AWS API 호출을 한곳에 모은 Provider.
테스트에서는 같은 메서드를 가진 가짜 객체로 교체합니다.

ClientError는 APICallError(service, operation)로 래핑되어 올라가고,
추출기 경계에서 ErrorCollector에 수집됩니다.
"""

from __future__ import annotations

import json
import logging
import threading
from collections.abc import Callable
from typing import TYPE_CHECKING, Any, Protocol, TypeVar

from botocore.exceptions import ClientError

from core.exceptions import APICallError, is_not_found
from core.parallel import get_client

if TYPE_CHECKING:
    import boto3

logger = logging.getLogger(__name__)

T = TypeVar("T")


class TopologyProvider(Protocol):
    """관계 탐색에 필요한 원격 조회 인터페이스"""

    def describe_target_groups(self, load_balancer_arn: str, region: str) -> list[dict[str, Any]]: ...

    def describe_target_health(self, target_group_arn: str, region: str) -> list[dict[str, Any]]: ...

    def get_function_policy(self, function_name: str, region: str) -> dict[str, Any] | None: ...

    def get_function_environment(self, function_name: str, region: str) -> dict[str, str]: ...

    def get_rest_api_resources(self, rest_api_id: str, region: str) -> list[dict[str, Any]]: ...

    def list_rule_targets(self, rule_name: str, region: str, event_bus_name: str | None = None) -> list[dict[str, Any]]: ...

    def describe_security_group(self, group_id: str, region: str) -> dict[str, Any] | None: ...


class AWSProvider:
    """boto3 기반 TopologyProvider 구현

    (서비스, 리전)별 client를 한 번만 만들어 재사용합니다.
    boto3 Session은 스레드 세이프하지 않으므로 client 생성은 lock 안에서 수행하고,
    생성된 client는 여러 워커 스레드에서 공유합니다.

    Example:
        provider = AWSProvider(boto3.Session(profile_name="prod"))
        groups = provider.describe_target_groups(lb_arn, "us-east-1")
    """

    def __init__(self, session: boto3.Session | None = None):
        if session is None:
            import boto3

            session = boto3.Session()
        self.session = session
        self._clients: dict[tuple[str, str], Any] = {}
        self._lock = threading.Lock()

    def _client(self, service: str, region: str) -> Any:
        key = (service, region)
        with self._lock:
            client = self._clients.get(key)
            if client is None:
                client = get_client(self.session, service, region_name=region or None)
                self._clients[key] = client
            return client

    @staticmethod
    def _call(service: str, operation: str, func: Callable[[], T]) -> T:
        try:
            return func()
        except ClientError as e:
            raise APICallError.from_client_error(service, operation, e) from e

    # -------------------------------------------------------------------------
    # ELBv2
    # -------------------------------------------------------------------------

    def describe_target_groups(self, load_balancer_arn: str, region: str) -> list[dict[str, Any]]:
        elbv2 = self._client("elbv2", region)

        def fetch() -> list[dict[str, Any]]:
            groups: list[dict[str, Any]] = []
            paginator = elbv2.get_paginator("describe_target_groups")
            for page in paginator.paginate(LoadBalancerArn=load_balancer_arn):
                groups.extend(page.get("TargetGroups", []))
            return groups

        return self._call("elbv2", "describe_target_groups", fetch)

    def describe_target_health(self, target_group_arn: str, region: str) -> list[dict[str, Any]]:
        elbv2 = self._client("elbv2", region)
        response = self._call(
            "elbv2",
            "describe_target_health",
            lambda: elbv2.describe_target_health(TargetGroupArn=target_group_arn),
        )
        return response.get("TargetHealthDescriptions", [])

    # -------------------------------------------------------------------------
    # Lambda
    # -------------------------------------------------------------------------

    def get_function_policy(self, function_name: str, region: str) -> dict[str, Any] | None:
        """리소스 기반 정책 조회 (정책이 없으면 None)"""
        client = self._client("lambda", region)
        try:
            response = client.get_policy(FunctionName=function_name)
        except ClientError as e:
            if is_not_found(e):
                # 트리거가 없는 함수는 정책 자체가 없음
                logger.debug(f"Lambda 정책 없음: {function_name}")
                return None
            raise APICallError.from_client_error("lambda", "get_policy", e) from e

        policy = response.get("Policy")
        if not policy:
            return None
        return json.loads(policy)

    def get_function_environment(self, function_name: str, region: str) -> dict[str, str]:
        client = self._client("lambda", region)
        response = self._call("lambda", "get_function", lambda: client.get_function(FunctionName=function_name))
        environment = response.get("Configuration", {}).get("Environment") or {}
        return environment.get("Variables") or {}

    # -------------------------------------------------------------------------
    # API Gateway / EventBridge
    # -------------------------------------------------------------------------

    def get_rest_api_resources(self, rest_api_id: str, region: str) -> list[dict[str, Any]]:
        apigateway = self._client("apigateway", region)

        def fetch() -> list[dict[str, Any]]:
            items: list[dict[str, Any]] = []
            paginator = apigateway.get_paginator("get_resources")
            for page in paginator.paginate(restApiId=rest_api_id, embed=["methods"]):
                items.extend(page.get("items", []))
            return items

        return self._call("apigateway", "get_resources", fetch)

    def list_rule_targets(self, rule_name: str, region: str, event_bus_name: str | None = None) -> list[dict[str, Any]]:
        events = self._client("events", region)
        kwargs: dict[str, Any] = {"Rule": rule_name}
        if event_bus_name:
            kwargs["EventBusName"] = event_bus_name

        def fetch() -> list[dict[str, Any]]:
            targets: list[dict[str, Any]] = []
            paginator = events.get_paginator("list_targets_by_rule")
            for page in paginator.paginate(**kwargs):
                targets.extend(page.get("Targets", []))
            return targets

        return self._call("events", "list_targets_by_rule", fetch)

    # -------------------------------------------------------------------------
    # EC2
    # -------------------------------------------------------------------------

    def describe_security_group(self, group_id: str, region: str) -> dict[str, Any] | None:
        """보안 그룹 1개의 규칙 조회 (존재하지 않으면 None)"""
        ec2 = self._client("ec2", region)
        try:
            response = ec2.describe_security_groups(GroupIds=[group_id])
        except ClientError as e:
            if is_not_found(e):
                logger.debug(f"보안 그룹 없음: {group_id}")
                return None
            raise APICallError.from_client_error("ec2", "describe_security_groups", e) from e

        groups = response.get("SecurityGroups", [])
        return groups[0] if groups else None
