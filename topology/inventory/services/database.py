"""
topology/inventory/services/database.py - Aurora 클러스터/인스턴스 수집

aurora 계열 엔진(aurora, aurora-mysql, aurora-postgresql)만 수집합니다.
인스턴스는 cluster_id(DBClusterIdentifier)로 소속 클러스터를 참조합니다.
"""

from __future__ import annotations

import logging

from core.parallel import ErrorCollector, get_client, try_or_default

from ...types import Resource, ResourceType
from ..helpers import application_of, iso, map_status, parse_tags

logger = logging.getLogger(__name__)


def _is_aurora(engine: str | None) -> bool:
    return bool(engine) and engine.startswith("aurora")  # type: ignore[union-attr]


def _rds_tags(rds, arn: str, region: str, errors: ErrorCollector | None) -> dict[str, str]:
    return try_or_default(
        lambda: parse_tags(rds.list_tags_for_resource(ResourceName=arn).get("TagList")),
        default={},
        collector=errors,
        region=region,
        operation="list_tags_for_resource",
        resource_id=arn,
        service="rds",
    )


def collect_aurora_clusters(session, region: str, errors: ErrorCollector | None = None) -> list[Resource]:
    """Aurora DB 클러스터를 수집합니다 (VPC 보안 그룹 포함)."""
    rds = get_client(session, "rds", region_name=region)
    resources: list[Resource] = []

    paginator = rds.get_paginator("describe_db_clusters")
    for page in paginator.paginate():
        for cluster in page.get("DBClusters", []):
            if not _is_aurora(cluster.get("Engine")):
                continue

            arn = cluster["DBClusterArn"]
            tags = _rds_tags(rds, arn, region, errors)
            group_ids = [g["VpcSecurityGroupId"] for g in cluster.get("VpcSecurityGroups", [])]

            resources.append(
                Resource(
                    id=arn,
                    type=ResourceType.AURORA,
                    name=cluster["DBClusterIdentifier"],
                    status=map_status(ResourceType.AURORA, cluster.get("Status")),
                    application=application_of(tags),
                    region=region,
                    tags=tags,
                    security_groups=group_ids or None,
                    details={
                        "engine": cluster.get("Engine", ""),
                        "endpoint": cluster.get("Endpoint"),
                        "port": cluster.get("Port"),
                        "members": [m.get("DBInstanceIdentifier") for m in cluster.get("DBClusterMembers", [])],
                    },
                    last_updated=iso(cluster.get("LatestRestorableTime")),
                )
            )

    return resources


def collect_aurora_instances(session, region: str, errors: ErrorCollector | None = None) -> list[Resource]:
    """Aurora DB 인스턴스를 수집합니다."""
    rds = get_client(session, "rds", region_name=region)
    resources: list[Resource] = []

    paginator = rds.get_paginator("describe_db_instances")
    for page in paginator.paginate():
        for db in page.get("DBInstances", []):
            if not _is_aurora(db.get("Engine")):
                continue

            arn = db["DBInstanceArn"]
            tags = _rds_tags(rds, arn, region, errors)
            endpoint = db.get("Endpoint") or {}

            resources.append(
                Resource(
                    id=arn,
                    type=ResourceType.AURORA_INSTANCE,
                    name=db["DBInstanceIdentifier"],
                    status=map_status(ResourceType.AURORA_INSTANCE, db.get("DBInstanceStatus")),
                    application=application_of(tags),
                    region=region,
                    tags=tags,
                    security_groups=[g["VpcSecurityGroupId"] for g in db.get("VpcSecurityGroups", [])],
                    cluster_id=db.get("DBClusterIdentifier"),
                    details={
                        "instanceType": db.get("DBInstanceClass", ""),
                        "endpoint": endpoint.get("Address"),
                        "port": endpoint.get("Port"),
                    },
                    last_updated=iso(db.get("InstanceCreateTime")),
                )
            )

    return resources
