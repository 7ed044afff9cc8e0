"""
topology/inventory/services/elb.py - ALB/NLB 수집

ELBv2 로드밸런서 중 application → alb, network → nlb 만 수집합니다 (gateway 제외).
"""

from __future__ import annotations

import logging

from core.parallel import ErrorCollector, get_client, try_or_default

from ...types import Resource, ResourceType
from ..helpers import application_of, iso, map_status, parse_tags

logger = logging.getLogger(__name__)

_LB_TYPES = {"application": ResourceType.ALB, "network": ResourceType.NLB}


def _lb_tags(elbv2, arns: list[str], region: str, errors: ErrorCollector | None) -> dict[str, dict[str, str]]:
    """태그 일괄 조회 (최대 20개씩 배치)"""
    result: dict[str, dict[str, str]] = {}
    batch_size = 20
    for i in range(0, len(arns), batch_size):
        batch_arns = arns[i : i + batch_size]
        descriptions = try_or_default(
            lambda batch_arns=batch_arns: elbv2.describe_tags(ResourceArns=batch_arns).get("TagDescriptions", []),
            default=[],
            collector=errors,
            region=region,
            operation="describe_tags",
            service="elbv2",
        )
        for description in descriptions:
            result[description.get("ResourceArn", "")] = parse_tags(description.get("Tags"))
    return result


def collect_load_balancers(session, region: str, errors: ErrorCollector | None = None) -> list[Resource]:
    """ALB/NLB 로드밸런서를 수집합니다."""
    elbv2 = get_client(session, "elbv2", region_name=region)

    load_balancers = []
    paginator = elbv2.get_paginator("describe_load_balancers")
    for page in paginator.paginate():
        for lb in page.get("LoadBalancers", []):
            if str(lb.get("Type", "")).lower() in _LB_TYPES:
                load_balancers.append(lb)

    tags_by_arn = _lb_tags(elbv2, [lb["LoadBalancerArn"] for lb in load_balancers], region, errors)

    resources: list[Resource] = []
    for lb in load_balancers:
        arn = lb["LoadBalancerArn"]
        lb_type = _LB_TYPES[lb["Type"].lower()]
        tags = tags_by_arn.get(arn, {})

        resources.append(
            Resource(
                id=arn,
                type=lb_type,
                name=lb.get("LoadBalancerName", ""),
                status=map_status(lb_type, lb.get("State", {}).get("Code")),
                application=application_of(tags),
                region=region,
                tags=tags,
                security_groups=list(lb.get("SecurityGroups") or []) or None,
                details={
                    "dnsName": lb.get("DNSName"),
                    "scheme": lb.get("Scheme"),
                    "availabilityZones": [az.get("ZoneName", "") for az in lb.get("AvailabilityZones", [])],
                },
                last_updated=iso(lb.get("CreatedTime")),
            )
        )

    return resources
