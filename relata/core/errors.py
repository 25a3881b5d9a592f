"""Exception taxonomy for relata.

Every failure raised by the attribute engine or the parameter validator
derives from RelataError and falls into one of four families:

- SchemaError: a manifest is malformed (build time, fatal to that relation
  or learner only)
- AttributeReferenceError: unknown or out-of-range attribute reference
  (build time or resolve time)
- DataError: a raw record is missing, mis-typed or out-of-domain for a field
  (resolve time, per record, never invalidates the registry)
- ParameterError: a supplied learner parameter or resource is invalid
  (request time)

Each error carries the names it concerns so callers can report them without
parsing messages.
"""


class RelataError(Exception):
    """Base class for all relata errors."""

    pass


# =============================================================================
# Schema errors (build time)
# =============================================================================


class SchemaError(RelataError):
    """Raised when a relation or learner manifest is malformed."""

    pass


class ManifestError(SchemaError):
    """Raised when a manifest file cannot be read or does not match its model."""

    def __init__(self, message: str, path: str | None = None):
        self.path = path
        super().__init__(f"{path}: {message}" if path else message)


class MalformedReferenceError(SchemaError):
    """Raised when a primitive:// or local:// URI cannot be parsed."""

    def __init__(self, uri: str, reason: str):
        self.uri = uri
        self.reason = reason
        super().__init__(f"malformed attribute reference {uri!r}: {reason}")


class DuplicateAttributeError(SchemaError):
    """Raised when a relation defines the same attribute name twice."""

    def __init__(self, relation: str, attribute: str):
        self.relation = relation
        self.attribute = attribute
        super().__init__(
            f"attribute '{attribute}' is already defined in relation '{relation}'"
        )


class DuplicateRelationError(SchemaError):
    """Raised when a relation name is registered twice."""

    def __init__(self, relation: str):
        self.relation = relation
        super().__init__(f"relation '{relation}' is already registered")


class InvalidDefaultAttributeError(SchemaError):
    """Raised when a relation's default attribute is not one of its attributes."""

    def __init__(self, relation: str, attribute: str | None):
        self.relation = relation
        self.attribute = attribute
        if attribute is None:
            message = f"relation '{relation}' has no attributes to use as default"
        else:
            message = (
                f"default attribute '{attribute}' is not defined in relation "
                f"'{relation}'"
            )
        super().__init__(message)


class FormatMismatchError(SchemaError):
    """Raised when an address or reference does not fit the relation's format."""

    def __init__(self, relation: str, attribute: str, reason: str):
        self.relation = relation
        self.attribute = attribute
        super().__init__(f"{relation}/{attribute}: {reason}")


# =============================================================================
# Reference errors
# =============================================================================


class AttributeReferenceError(RelataError):
    """Raised when an attribute reference cannot be followed."""

    pass


class UnknownRelationError(AttributeReferenceError):
    """Raised when a reference names a relation that is not registered."""

    def __init__(self, relation: str):
        self.relation = relation
        super().__init__(f"unknown relation '{relation}'")


class UnknownAttributeError(AttributeReferenceError):
    """Raised when a reference names an attribute that is not (yet) registered."""

    def __init__(self, relation: str, attribute: str, referrer: str | None = None):
        self.relation = relation
        self.attribute = attribute
        self.referrer = referrer
        message = f"unknown attribute '{attribute}' in relation '{relation}'"
        if referrer:
            message += f" (referenced from '{referrer}')"
        super().__init__(message)


class IndexOutOfRangeError(AttributeReferenceError):
    """Raised when a 1-based index exceeds the arity of a sequence attribute."""

    def __init__(self, relation: str, attribute: str, index: int, arity: int):
        self.relation = relation
        self.attribute = attribute
        self.index = index
        self.arity = arity
        super().__init__(
            f"index {index} is out of range for '{relation}/{attribute}' "
            f"(arity {arity})"
        )


class InvalidSelectorError(AttributeReferenceError):
    """Raised when a selector does not fit the shape of the selected value."""

    def __init__(self, relation: str, attribute: str, selector: int | str, reason: str):
        self.relation = relation
        self.attribute = attribute
        self.selector = selector
        super().__init__(
            f"cannot select {selector!r} from '{relation}/{attribute}': {reason}"
        )


# =============================================================================
# Data errors (resolve time)
# =============================================================================


class DataError(RelataError):
    """Raised when a raw record cannot supply a well-typed field value."""

    def __init__(self, relation: str, attribute: str, reason: str):
        self.relation = relation
        self.attribute = attribute
        self.reason = reason
        super().__init__(f"{relation}/{attribute}: {reason}")


class RecordFormatError(DataError):
    """Raised when a record's shape does not match the relation's format."""

    pass


class MissingFieldError(DataError):
    """Raised when a primitive's column or property is absent from a record."""

    pass


class TypeCoercionError(DataError):
    """Raised when a raw field cannot be coerced to the declared type."""

    pass


class DomainViolationError(DataError):
    """Raised when a nominal value is outside its declared domain."""

    def __init__(self, relation: str, attribute: str, value: str, domain: tuple[str, ...]):
        self.value = value
        self.domain = domain
        super().__init__(
            relation,
            attribute,
            f"value {value!r} is not one of {', '.join(domain)}",
        )


# =============================================================================
# Parameter errors (request time)
# =============================================================================


class ParameterError(RelataError):
    """Raised when a learner request carries invalid parameters or resources."""

    def __init__(self, learner: str, parameter: str, reason: str):
        self.learner = learner
        self.parameter = parameter
        self.reason = reason
        super().__init__(f"{learner}.{parameter}: {reason}")


class ParameterTypeError(ParameterError):
    """Raised when a parameter value does not have the declared type."""

    pass


class ParameterConstraintError(ParameterError):
    """Raised when a parameter value violates a declared constraint."""

    def __init__(self, learner: str, parameter: str, constraint: str, reason: str):
        self.constraint = constraint
        super().__init__(learner, parameter, f"violates {constraint}: {reason}")


class UnknownParameterError(ParameterError):
    """Raised when a supplied parameter is not declared by the learner."""

    def __init__(self, learner: str, parameter: str):
        super().__init__(learner, parameter, "is not a parameter of this learner")


class MissingParameterError(ParameterError):
    """Raised when a required parameter has neither a value nor a default."""

    def __init__(self, learner: str, parameter: str):
        super().__init__(learner, parameter, "is required but was not supplied")


class ResourceSlotError(ParameterError):
    """Raised when task resources do not match the learner's resource slots."""

    pass


class UnknownLearnerError(ParameterError):
    """Raised when a learner name is not in the catalog."""

    def __init__(self, learner: str):
        self.learner = learner
        self.parameter = ""
        self.reason = "unknown learner"
        RelataError.__init__(self, f"unknown learner '{learner}'")


# =============================================================================
# Registry state
# =============================================================================


class RegistrySealedError(RelataError):
    """Raised when a sealed registry is asked to register another relation."""

    def __init__(self, relation: str):
        self.relation = relation
        super().__init__(
            f"cannot register relation '{relation}': the registry is sealed"
        )
