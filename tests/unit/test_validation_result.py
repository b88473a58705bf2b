"""Tests for the ValidationError / ValidationResult DTOs."""

from logistics_kernel.domain.dtos import ValidationError, ValidationResult


def _err(field, code="required"):
    return ValidationError(code=code, message=f"{field} is required", field=field)


class TestValidationResult:

    def test_success_is_truthy(self):
        result = ValidationResult.success()
        assert result.is_valid
        assert bool(result)
        assert result.errors == ()
        assert result.error is None

    def test_failure_keeps_all_errors(self):
        result = ValidationResult.failure(_err("a"), _err("b"))
        assert not result
        assert result.fields() == ("a", "b")
        assert result.error.field == "a"

    def test_from_errors_empty_is_success(self):
        assert ValidationResult.from_errors([]).is_valid

    def test_merge_accumulates_in_order(self):
        merged = ValidationResult.failure(_err("a")).merge(
            ValidationResult.success(),
            ValidationResult.failure(_err("b"), _err("c")),
        )
        assert not merged.is_valid
        assert merged.fields() == ("a", "b", "c")

    def test_merge_of_successes_is_success(self):
        assert ValidationResult.success().merge(ValidationResult.success()).is_valid

    def test_fields_skip_untagged_errors(self):
        result = ValidationResult.failure(ValidationError(code="x", message="m"))
        assert result.fields() == ()
