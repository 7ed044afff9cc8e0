"""
topology/inventory/services/compute.py - Compute 리소스 수집

ECS Service, Lambda Function, EC2 Instance 수집.
"""

from __future__ import annotations

import logging
from typing import Any

from core.parallel import ErrorCollector, get_client, try_or_default

from ...types import Resource, ResourceStatus, ResourceType
from ..helpers import application_of, event_level, iso, map_status, parse_tags

logger = logging.getLogger(__name__)


def ecs_service_status(service: dict[str, Any]) -> ResourceStatus:
    """ECS 서비스 상태 (PRIMARY 배포의 rollout 상태 + 실행 중 태스크 수)"""
    if service.get("status") == "INACTIVE":
        return ResourceStatus.STOPPED

    primary = next((d for d in service.get("deployments", []) if d.get("status") == "PRIMARY"), None)
    if primary:
        if primary.get("rolloutState") == "FAILED":
            return ResourceStatus.STOPPED
        if primary.get("rolloutState") in ("IN_PROGRESS", "PENDING"):
            return ResourceStatus.PENDING

    running = service.get("runningCount", 0)
    if running == 0:
        return ResourceStatus.STOPPED
    if service.get("status") == "ACTIVE":
        return ResourceStatus.RUNNING
    return ResourceStatus.PENDING


def _ecs_events(service: dict[str, Any]) -> list[dict[str, Any]]:
    events = []
    for event in (service.get("events") or [])[:5]:
        message = event.get("message", "")
        events.append(
            {
                "id": event.get("id", ""),
                "message": message,
                "createdAt": iso(event.get("createdAt")),
                "level": event_level(message),
            }
        )
    return sorted(events, key=lambda e: e["createdAt"] or "", reverse=True)


def collect_ecs_services(session, region: str, errors: ErrorCollector | None = None) -> list[Resource]:
    """ECS Service 리소스를 수집합니다.

    클러스터별로 서비스를 조회하고 (10개씩 배치) 태그를 함께 가져옵니다.
    네트워크 설정(awsvpc 보안 그룹)은 details.networkConfiguration에 그대로 담습니다.
    loadBalancers에 선언된 대상 그룹 ARN은 details.targetGroupArns에 담습니다.

    Args:
        session: boto3 Session 객체
        region: AWS 리전 코드
        errors: 부수 API 실패 수집기

    Returns:
        Resource 목록 (type=ecs)
    """
    ecs = get_client(session, "ecs", region_name=region)
    resources: list[Resource] = []

    cluster_arns: list[str] = []
    paginator = ecs.get_paginator("list_clusters")
    for page in paginator.paginate():
        cluster_arns.extend(page.get("clusterArns", []))

    for cluster_arn in cluster_arns:
        cluster_name = cluster_arn.split("/")[-1]

        service_arns: list[str] = []
        paginator = ecs.get_paginator("list_services")
        for page in paginator.paginate(cluster=cluster_arn):
            service_arns.extend(page.get("serviceArns", []))

        batch_size = 10
        for i in range(0, len(service_arns), batch_size):
            batch_arns = service_arns[i : i + batch_size]
            resp = ecs.describe_services(cluster=cluster_arn, services=batch_arns, include=["TAGS"])
            for svc in resp.get("services", []):
                tags = parse_tags(svc.get("tags"))
                deployments = svc.get("deployments", [])
                primary = next((d for d in deployments if d.get("status") == "PRIMARY"), None)
                latest = primary or (deployments[0] if deployments else {})

                details: dict[str, Any] = {
                    "clusterName": cluster_name,
                    "runningCount": svc.get("runningCount", 0),
                    "desiredCount": svc.get("desiredCount", 0),
                    "pendingCount": svc.get("pendingCount", 0),
                    "deploymentStatus": latest.get("status"),
                    "deploymentRolloutState": latest.get("rolloutState"),
                    "failureReason": latest.get("rolloutStateReason"),
                    "events": _ecs_events(svc),
                }
                if svc.get("networkConfiguration"):
                    details["networkConfiguration"] = svc["networkConfiguration"]
                target_groups = [lb.get("targetGroupArn") for lb in svc.get("loadBalancers", [])]
                if any(target_groups):
                    details["targetGroupArns"] = [arn for arn in target_groups if arn]

                resources.append(
                    Resource(
                        id=svc["serviceArn"],
                        type=ResourceType.ECS,
                        name=svc.get("serviceName", ""),
                        status=ecs_service_status(svc),
                        application=application_of(tags),
                        region=region,
                        tags=tags,
                        details=details,
                        last_updated=iso(latest.get("updatedAt")),
                    )
                )

    return resources


def collect_lambda_functions(session, region: str, errors: ErrorCollector | None = None) -> list[Resource]:
    """Lambda Function 리소스를 수집합니다.

    태그는 함수별 list_tags 호출이 필요하며, 실패해도 빈 태그로 계속 진행합니다.
    VPC 보안 그룹이 있으면 security_groups에 담습니다.
    """
    lambda_client = get_client(session, "lambda", region_name=region)
    resources: list[Resource] = []

    paginator = lambda_client.get_paginator("list_functions")
    for page in paginator.paginate():
        for func in page.get("Functions", []):
            arn = func["FunctionArn"]
            tags = try_or_default(
                lambda arn=arn: lambda_client.list_tags(Resource=arn).get("Tags", {}),
                default={},
                collector=errors,
                region=region,
                operation="list_tags",
                resource_id=arn,
                service="lambda",
            )
            group_ids = (func.get("VpcConfig") or {}).get("SecurityGroupIds") or None

            resources.append(
                Resource(
                    id=arn,
                    type=ResourceType.LAMBDA,
                    name=func["FunctionName"],
                    # list_functions 응답에 State가 없으면 활성 함수로 간주
                    status=map_status(ResourceType.LAMBDA, func.get("State", "Active")),
                    application=application_of(tags),
                    region=region,
                    tags=tags,
                    security_groups=list(group_ids) if group_ids else None,
                    details={
                        "runtime": func.get("Runtime", ""),
                        "memorySize": func.get("MemorySize", 128),
                        "timeout": func.get("Timeout", 3),
                    },
                    last_updated=iso(func.get("LastModified")),
                )
            )

    return resources


def collect_ec2_instances(session, region: str, errors: ErrorCollector | None = None) -> list[Resource]:
    """EC2 Instance 리소스를 수집합니다."""
    ec2 = get_client(session, "ec2", region_name=region)
    resources: list[Resource] = []

    paginator = ec2.get_paginator("describe_instances")
    for page in paginator.paginate():
        for reservation in page.get("Reservations", []):
            for inst in reservation.get("Instances", []):
                tags = parse_tags(inst.get("Tags"))
                instance_id = inst["InstanceId"]

                resources.append(
                    Resource(
                        id=instance_id,
                        type=ResourceType.EC2,
                        name=tags.get("Name") or instance_id,
                        status=map_status(ResourceType.EC2, inst.get("State", {}).get("Name")),
                        application=application_of(tags),
                        region=region,
                        tags=tags,
                        security_groups=[sg["GroupId"] for sg in inst.get("SecurityGroups", []) if sg.get("GroupId")],
                        details={
                            "instanceType": inst.get("InstanceType", ""),
                            "publicIp": inst.get("PublicIpAddress"),
                            "privateIp": inst.get("PrivateIpAddress"),
                        },
                        last_updated=iso(inst.get("LaunchTime")),
                    )
                )

    return resources
