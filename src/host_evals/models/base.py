"""Base Pydantic model configuration for harness models.

All harness models inherit from HostEvalsBaseModel to ensure consistent behavior:
- Immutability (frozen=True) so task content and reports cannot drift
- Strict validation (extra="forbid") to catch typos and invalid fields
- Flexible field naming (populate_by_name=True) for alias support
"""

from pydantic import BaseModel, ConfigDict


class HostEvalsBaseModel(BaseModel):
    """Base model for all harness value objects.

    Example:
        >>> from pydantic import Field
        >>> class MyModel(HostEvalsBaseModel):
        ...     name: str
        ...     count: int = Field(default=0, ge=0)
        >>>
        >>> obj = MyModel(name="test", count=5)
        >>> obj.name
        'test'
        >>> obj.count = 10  # Raises ValidationError (frozen)
        Traceback (most recent call last):
        ...
        pydantic_core._pydantic_core.ValidationError: ...
    """

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        populate_by_name=True,
        use_enum_values=False,
        validate_default=True,
    )
