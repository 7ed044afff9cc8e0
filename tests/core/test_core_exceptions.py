"""
tests/core/test_core_exceptions.py - 예외 계층 테스트
"""

from botocore.exceptions import ClientError

from core.exceptions import (
    APICallError,
    ConfigError,
    DiscoveryError,
    InventoryError,
    TopologyError,
    ValidationError,
    format_error_for_user,
    is_access_denied,
    is_not_found,
    is_throttling,
)


def _client_error(code: str, message: str = "msg") -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": message}}, "Op")


class TestHierarchy:
    """예외 계층 테스트"""

    def test_subclasses(self):
        for exc in (
            InventoryError("x"),
            DiscoveryError("x"),
            APICallError("ec2", "op"),
            ConfigError("k", "m"),
            ValidationError("f", 1, "int"),
        ):
            assert isinstance(exc, TopologyError)

    def test_str_with_cause(self):
        error = TopologyError("실패", cause=ValueError("원인"))
        assert str(error) == "실패: 원인"

    def test_to_dict(self):
        error = TopologyError("실패", details={"a": 1})
        data = error.to_dict()

        assert data["error_type"] == "TopologyError"
        assert data["message"] == "실패"
        assert data["cause"] is None
        assert data["details"] == {"a": 1}


class TestInventoryError:
    """InventoryError 테스트"""

    def test_regions_in_details(self):
        error = InventoryError("모든 리전 실패", regions=["us-east-1", "us-east-2"])

        assert error.regions == ["us-east-1", "us-east-2"]
        assert error.details["regions"] == ["us-east-1", "us-east-2"]
        assert "인벤토리 수집 실패" in str(error)

    def test_no_regions(self):
        assert InventoryError("x").regions == []


class TestDiscoveryError:
    def test_message(self):
        assert str(DiscoveryError("인벤토리 없음")) == "관계 탐색 실패: 인벤토리 없음"


class TestAPICallError:
    """APICallError 테스트"""

    def test_from_client_error(self):
        error = APICallError.from_client_error("lambda", "get_policy", _client_error("AccessDenied", "no"))

        assert error.service == "lambda"
        assert error.operation == "get_policy"
        assert error.error_code == "AccessDenied"
        assert error.error_message == "no"
        assert isinstance(error.cause, ClientError)
        assert "lambda.get_policy 실패 (AccessDenied)" in str(error)

    def test_from_plain_exception(self):
        error = APICallError.from_client_error("ec2", "describe", ValueError("x"))
        assert error.error_code is None


class TestValidationError:
    def test_details(self):
        error = ValidationError("type", "database", "ecs | lambda")

        assert error.field == "type"
        assert error.details["value"] == "database"
        assert "type" in str(error)


class TestErrorChecks:
    """에러 코드 판별 함수 테스트"""

    def test_access_denied(self):
        assert is_access_denied(_client_error("AccessDeniedException"))
        assert not is_access_denied(_client_error("Throttling"))

    def test_throttling(self):
        assert is_throttling(_client_error("TooManyRequestsException"))

    def test_not_found(self):
        """Lambda 정책 없음 / 보안 그룹 없음"""
        assert is_not_found(_client_error("ResourceNotFoundException"))
        assert is_not_found(_client_error("InvalidGroup.NotFound"))
        assert not is_not_found(_client_error("AccessDenied"))

    def test_api_call_error_code(self):
        assert is_not_found(APICallError("lambda", "get_policy", error_code="ResourceNotFoundException"))

    def test_plain_exception(self):
        assert not is_not_found(ValueError("x"))


class TestFormatErrorForUser:
    """format_error_for_user 테스트"""

    def test_topology_error(self):
        assert format_error_for_user(DiscoveryError("x")) == "관계 탐색 실패: x"

    def test_friendly_client_error(self):
        assert "IAM" in format_error_for_user(_client_error("AccessDenied"))

    def test_unknown_client_error(self):
        assert format_error_for_user(_client_error("Weird", "boom")) == "Weird: boom"

    def test_plain_exception(self):
        assert format_error_for_user(ValueError("boom")) == "boom"
