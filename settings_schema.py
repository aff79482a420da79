from pydantic import BaseModel, Field, ValidationError


class EngineSettings(BaseModel):
    default_load: float = Field(80.0, gt=0)
    default_reps: str = "10"
    default_rep_range: str = "8-12"
    default_rest: int = Field(90, ge=0)
    default_rpe: float = Field(8.0, ge=0, le=10)
    default_increment: float = Field(2.5, ge=0)
    load_increment: float = Field(1.0, gt=0)
    language: str = "en"


def validate_settings(data: dict) -> None:
    try:
        EngineSettings(**data)
    except ValidationError as e:
        raise ValueError(str(e))
