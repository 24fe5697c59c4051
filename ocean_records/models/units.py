"""Unit annotations attached to record fields."""

from pydantic import BaseModel, Field


class Unit(BaseModel):
    """Unit and measurement scale of a field.

    Examples:
    - temperature: unit="degC", scale="ITS-90"
    - salinity: unit="", scale="PSS-78"
    - pressure: unit="dbar"
    """

    unit: str = Field(default="", description="Unit expression (e.g., 'degC', 'dbar')")
    scale: str = Field(default="", description="Measurement scale (e.g., 'ITS-90', 'PSS-78')")

    def __str__(self) -> str:
        if self.scale:
            return f"{self.unit} ({self.scale})" if self.unit else self.scale
        return self.unit

    class Config:
        frozen = True
        json_schema_extra = {"example": {"unit": "degC", "scale": "ITS-90"}}
