"""Tests for learner parameter validation and toolkit translation."""

import pytest

from relata.core.errors import (
    MissingParameterError,
    ParameterConstraintError,
    ParameterError,
    ParameterTypeError,
    SchemaError,
    UnknownLearnerError,
    UnknownParameterError,
)
from relata.core.models import LearnerManifest
from relata.learners import ParameterSchema, coerce_parameter_value, translate, validate


def _manifest(parameters, model_class="models.learner.WekaLearner"):
    return LearnerManifest.from_dict(
        {
            "name": "toy",
            "implementation": "toy.Learner",
            "learnerModelClass": model_class,
            "resources": {"/source": "$arrayAttribute"},
            "parameters": parameters,
        }
    )


class TestJ48:
    def test_translation(self, catalog):
        validated = validate(
            "j48",
            {"confidence": 0.1, "min_instances": 2, "num_folds": 3, "seed": 1},
            catalog=catalog,
        )
        assert translate(validated) == ["-C", "0.1", "-M", "2", "-N", "3", "-Q", "1"]

    def test_defaults_only(self, catalog):
        validated = validate("j48", {}, catalog=catalog)
        assert dict(validated.values) == {
            "confidence": 0.25,
            "min_instances": 2,
            "num_folds": 3,
            "seed": 1,
        }
        assert translate(validated) == ["-C", "0.25", "-M", "2", "-N", "3", "-Q", "1"]

    def test_flags_emit_bare_tokens(self, catalog):
        validated = validate(
            "j48", {"unpruned": True, "binary_splits": False}, catalog=catalog
        )
        tokens = translate(validated)
        assert tokens[0] == "-U"
        assert "-B" not in tokens

    def test_declaration_order_not_caller_order(self, catalog):
        first = validate("j48", {"seed": 5, "confidence": 0.3}, catalog=catalog)
        second = validate("j48", {"confidence": 0.3, "seed": 5}, catalog=catalog)
        assert translate(first) == translate(second)
        assert list(first.values) == ["confidence", "min_instances", "num_folds", "seed"]

    def test_integer_rejects_fraction(self, catalog):
        with pytest.raises(ParameterTypeError):
            validate("j48", {"min_instances": 2.5}, catalog=catalog)

    def test_integer_accepts_integral_float(self, catalog):
        validated = validate("j48", {"min_instances": 4.0}, catalog=catalog)
        assert validated["min_instances"] == 4
        assert isinstance(validated["min_instances"], int)

    def test_boolean_is_not_a_number(self, catalog):
        with pytest.raises(ParameterTypeError):
            validate("j48", {"confidence": True}, catalog=catalog)

    def test_flag_requires_boolean(self, catalog):
        with pytest.raises(ParameterTypeError):
            validate("j48", {"unpruned": "yes"}, catalog=catalog)

    def test_none_means_default(self, catalog):
        validated = validate("j48", {"confidence": None}, catalog=catalog)
        assert validated["confidence"] == 0.25


class TestKMeans:
    def test_min_constraint(self, catalog):
        with pytest.raises(ParameterConstraintError) as exc_info:
            validate("kmeans", {"k": 1}, catalog=catalog)
        assert exc_info.value.constraint == "min"
        assert exc_info.value.parameter == "k"
        assert "2 (got 1)" in str(exc_info.value)

    def test_enum_constraint(self, catalog):
        with pytest.raises(ParameterConstraintError) as exc_info:
            validate("kmeans", {"distance_function": "weka.core.Cosine"}, catalog=catalog)
        assert exc_info.value.constraint == "enum"

    def test_valid_request(self, catalog):
        validated = validate("kmeans", {"k": 3, "use_mean_for_missing": True}, catalog=catalog)
        assert translate(validated) == [
            "-N", "3",
            "-M",
            "-S", "10",
            "-A", "weka.core.EuclideanDistance",
            "-I", "500",
        ]


class TestSklearn:
    def test_keyword_tokens(self, catalog):
        validated = validate("svc", {"C": 1.5, "kernel": "linear"}, catalog=catalog)
        assert translate(validated) == [
            "C=1.5",
            "kernel=linear",
            "degree=3",
            "gamma=0.0",
            "coef0=0.0",
            "shrinking=True",
            "tol=0.001",
        ]

    def test_false_flag_is_rendered(self, catalog):
        validated = validate("svc", {"shrinking": False}, catalog=catalog)
        assert "shrinking=False" in translate(validated)


class TestRequestErrors:
    def test_unknown_parameter(self, catalog):
        with pytest.raises(UnknownParameterError):
            validate("j48", {"depth": 3}, catalog=catalog)

    def test_unknown_learner(self, catalog):
        with pytest.raises(UnknownLearnerError):
            validate("forest", {}, catalog=catalog)

    def test_all_are_parameter_errors(self):
        for cls in (UnknownParameterError, MissingParameterError, UnknownLearnerError):
            assert issubclass(cls, ParameterError)

    def test_required_parameter(self):
        schema = ParameterSchema(
            _manifest({"k": {"type": "$integer", "required": True, "toolkitName": "-N"}})
        )
        with pytest.raises(MissingParameterError):
            schema.validate({})
        assert schema.translate(schema.validate({"k": 4})) == ["-N", "4"]

    def test_optional_without_default_is_omitted(self):
        schema = ParameterSchema(_manifest({"k": {"type": "$integer", "toolkitName": "-N"}}))
        validated = schema.validate()
        assert "k" not in validated
        assert schema.translate(validated) == []

    def test_exclusive_bounds(self):
        schema = ParameterSchema(
            _manifest(
                {
                    "rate": {
                        "type": "$number",
                        "constraints": {"min": 0, "exclusiveMinimum": True, "max": 1},
                        "toolkitName": "-R",
                    }
                }
            )
        )
        with pytest.raises(ParameterConstraintError) as exc_info:
            schema.validate({"rate": 0})
        assert exc_info.value.constraint == "exclusiveMinimum"
        with pytest.raises(ParameterConstraintError) as exc_info:
            schema.validate({"rate": 1.5})
        assert exc_info.value.constraint == "max"
        assert schema.validate({"rate": 1})["rate"] == 1

    def test_pattern(self):
        schema = ParameterSchema(
            _manifest(
                {
                    "mode": {
                        "type": "$string",
                        "constraints": {"pattern": "[a-z]+"},
                        "toolkitName": "-X",
                    }
                }
            )
        )
        assert schema.validate({"mode": "fast"})["mode"] == "fast"
        with pytest.raises(ParameterConstraintError) as exc_info:
            schema.validate({"mode": "fast2"})
        assert exc_info.value.constraint == "pattern"

    def test_translate_checks_learner(self, catalog):
        validated = validate("j48", {}, catalog=catalog)
        with pytest.raises(ValueError):
            catalog.schema("kmeans").translate(validated)


class TestDeclarations:
    def test_invalid_default_rejected_at_build(self):
        with pytest.raises(SchemaError, match="invalid default"):
            ParameterSchema(
                _manifest(
                    {
                        "k": {
                            "type": "$integer",
                            "constraints": {"min": 2},
                            "defaultValue": 1,
                            "toolkitName": "-N",
                        }
                    }
                )
            )

    def test_min_above_max(self):
        with pytest.raises(SchemaError, match="exceeds"):
            ParameterSchema(
                _manifest(
                    {
                        "k": {
                            "type": "$integer",
                            "constraints": {"min": 5, "max": 1},
                            "toolkitName": "-N",
                        }
                    }
                )
            )

    def test_invalid_pattern(self):
        with pytest.raises(SchemaError, match="invalid pattern"):
            ParameterSchema(
                _manifest(
                    {
                        "m": {
                            "type": "$string",
                            "constraints": {"pattern": "("},
                            "toolkitName": "-M",
                        }
                    }
                )
            )


class TestCoercion:
    def test_text_values(self, catalog):
        schema = catalog.schema("j48")
        assert schema.coerce({"confidence": "0.1", "min_instances": "3", "unpruned": "true"}) == {
            "confidence": 0.1,
            "min_instances": 3,
            "unpruned": True,
        }

    def test_number_keeps_integer_text_integral(self, catalog):
        spec = catalog.get("j48").parameters["confidence"]
        assert coerce_parameter_value(spec, "1") == 1
        assert coerce_parameter_value(spec, "1e-2") == 0.01

    def test_unreadable_text(self, catalog):
        spec = catalog.get("kmeans").parameters["k"]
        with pytest.raises(ParameterTypeError):
            coerce_parameter_value(spec, "three", learner="kmeans")

    def test_unknown_name(self, catalog):
        with pytest.raises(UnknownParameterError):
            catalog.schema("j48").coerce({"depth": "3"})
