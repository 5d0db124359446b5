"""
Result Types Tests - OperationResult / BooleanResult
"""

import pytest

from ocpkit.errors import BooleanOpFailure, KernelError, LoftFailure
from ocpkit.result_types import BooleanResult, OperationResult, ResultStatus


class TestFactories:

    def test_success(self):
        result = OperationResult.success(42)
        assert result.status == ResultStatus.SUCCESS
        assert result.is_success
        assert not result.has_warnings
        assert result.unwrap() == 42

    def test_warning_with_value_is_success(self):
        result = OperationResult.warning("shape", "repariert", warnings=["ShapeFix"])
        assert result.is_success
        assert result.has_warnings
        assert result.warnings == ["ShapeFix"]

    def test_empty(self):
        result = OperationResult.empty("nichts", reason="disjunkt")
        assert result.is_empty
        assert not result.is_success
        assert result.details["reason"] == "disjunkt"

    def test_error_records_exception(self):
        result = OperationResult.error("kaputt", exception=ValueError("x"), context={"op": "fuse"})
        assert result.is_error
        assert result.details["exception_type"] == "ValueError"
        assert result.details["exception_message"] == "x"
        assert result.details["op"] == "fuse"


class TestUnwrap:

    def test_unwrap_error_raises_kernel_error(self):
        with pytest.raises(KernelError) as exc_info:
            OperationResult.error("kaputt").unwrap()
        assert exc_info.value.context["status"] == "ERROR"

    def test_unwrap_with_override(self):
        with pytest.raises(LoftFailure):
            OperationResult.empty("leer").unwrap(LoftFailure)

    def test_boolean_result_raises_boolean_failure(self):
        result = BooleanResult.empty("leer", reason="disjunkt", operation_type="intersect")
        with pytest.raises(BooleanOpFailure) as exc_info:
            result.unwrap()
        assert exc_info.value.context["operation_type"] == "intersect"


class TestReporting:

    def test_report_dict(self):
        report = OperationResult.warning(1.0, "ok", warnings=["w"]).to_report_dict()
        assert report["status"] == "WARNING"
        assert report["warnings"] == ["w"]
        assert report["value_type"] == "float"

    def test_log_returns_self(self):
        result = OperationResult.error("kaputt")
        assert result.log("Test") is result

    def test_repr(self):
        assert repr(BooleanResult.success(None, "fertig")).startswith("BooleanResult(SUCCESS")
