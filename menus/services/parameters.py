"""
Paramètres de génération de menu (format versionné)

Deux formats coexistent en base et côté client :
- v1 (legacy, "plat") : une liste `number_of_dishes` et des contraintes globales
- v2 (courant) : une liste de `configurations`, chacune avec ses propres contraintes

Tout ce qui entre dans le service passe par `parse_parameters`, qui migre le
format legacy une seule fois. La logique métier ne manipule que `MenuParameters`.
"""
import logging
import uuid
from datetime import date, timedelta
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from .exceptions import InvalidParametersError

logger = logging.getLogger(__name__)

CURRENT_VERSION = 2
LEGACY_VERSION = 1
DEFAULT_NUMBER_OF_DISHES = 5
DEFAULT_SERVINGS = 2


def next_monday(today: Optional[date] = None) -> date:
    """Renvoie `today` si c'est un lundi, sinon le lundi suivant"""
    today = today or date.today()
    return today + timedelta(days=(7 - today.weekday()) % 7)


def _duration_to_minutes(value):
    # Les anciens paramètres stockaient des durées "HH:MM:SS"
    if value is None or value == '':
        return None
    if isinstance(value, str) and ':' in value:
        parts = [int(p) for p in value.split(':')]
        while len(parts) < 3:
            parts.append(0)
        hours, minutes, seconds = parts[:3]
        return hours * 60 + minutes + (1 if seconds else 0)
    return value


class DesiredFood(BaseModel):
    food: str
    weight: Optional[int] = None


class DishConfigurationParameters(BaseModel):
    """Contraintes d'un groupe de plats"""
    dish_types: Dict[str, Optional[int]] = Field(default_factory=dict)
    banned_foods: List[str] = Field(default_factory=list)
    desired_foods: List[DesiredFood] = Field(default_factory=list)
    weighted_options: Dict[str, Optional[int]] = Field(default_factory=dict)
    max_preparation_time: Optional[int] = Field(None, description="Minutes")
    max_cooking_time: Optional[int] = Field(None, description="Minutes")
    min_kcal_per_dish: Optional[int] = None
    max_kcal_per_dish: Optional[int] = None

    @field_validator('max_preparation_time', 'max_cooking_time', mode='before')
    @classmethod
    def parse_duration(cls, value):
        return _duration_to_minutes(value)

    @field_validator('max_preparation_time', 'max_cooking_time')
    @classmethod
    def check_positive_time(cls, value):
        if value is not None and value <= 0:
            raise ValueError("Le temps maximum doit être supérieur à 0")
        return value

    @field_validator('min_kcal_per_dish', 'max_kcal_per_dish')
    @classmethod
    def check_kcal(cls, value):
        if value is not None and value < 0:
            raise ValueError("Les calories doivent être positives ou nulles")
        return value

    @model_validator(mode='after')
    def check_kcal_range(self):
        if (
            self.min_kcal_per_dish is not None
            and self.max_kcal_per_dish is not None
            and self.min_kcal_per_dish > self.max_kcal_per_dish
        ):
            raise ValueError("Les calories minimum doivent être inférieures ou égales aux calories maximum")
        return self


class DishConfiguration(BaseModel):
    """Un groupe de plats (ex : 5 plats pour 2 personnes) et ses contraintes"""
    id: uuid.UUID = Field(default_factory=uuid.uuid4)
    number_of_dishes: int = Field(
        DEFAULT_NUMBER_OF_DISHES, ge=1, le=20,
        description="Le nombre de plats doit être compris entre 1 et 20",
    )
    servings: int = Field(
        DEFAULT_SERVINGS, ge=1, le=20,
        description="Le nombre de personnes doit être compris entre 1 et 20",
    )
    name: Optional[str] = None
    parameters: DishConfigurationParameters = Field(default_factory=DishConfigurationParameters)


class MenuParameters(BaseModel):
    """Format courant des paramètres de génération"""
    version: Literal[2] = CURRENT_VERSION
    week_start_date: Optional[date] = None
    seasonal_foods: bool = True
    configurations: List[DishConfiguration] = Field(default_factory=list)

    @property
    def total_dishes(self) -> int:
        return sum(configuration.number_of_dishes for configuration in self.configurations)


class LegacyDishCount(BaseModel):
    number_of_dishes: int = Field(DEFAULT_NUMBER_OF_DISHES, ge=1, le=20)
    servings: int = Field(DEFAULT_SERVINGS, ge=1, le=20)


class LegacyMenuParameters(DishConfigurationParameters):
    """Ancien format : contraintes globales partagées par tous les groupes"""
    version: Literal[1] = LEGACY_VERSION
    number_of_dishes: List[LegacyDishCount] = Field(default_factory=list)
    seasonal_foods: bool = True
    week_start_date: Optional[date] = None


def default_parameters(today: Optional[date] = None) -> MenuParameters:
    return MenuParameters(
        week_start_date=next_monday(today),
        configurations=[DishConfiguration()],
    )


def migrate_legacy(legacy: LegacyMenuParameters) -> MenuParameters:
    """Chaque entrée `number_of_dishes` devient une configuration portant une copie des contraintes globales"""
    shared = DishConfigurationParameters.model_validate(
        legacy.model_dump(include=set(DishConfigurationParameters.model_fields))
    )
    entries = legacy.number_of_dishes or [LegacyDishCount()]
    configurations = [
        DishConfiguration(
            number_of_dishes=entry.number_of_dishes,
            servings=entry.servings,
            parameters=shared.model_copy(deep=True),
        )
        for entry in entries
    ]
    return MenuParameters(
        week_start_date=legacy.week_start_date,
        seasonal_foods=legacy.seasonal_foods,
        configurations=configurations,
    )


def parse_parameters(data: Optional[Any]) -> MenuParameters:
    """
    Point d'entrée unique : accepte un dict (v1 ou v2), un modèle déjà parsé ou None.

    La version est lue dans `version` si présente, sinon déduite de la présence de `configurations`.
    """
    if data is None:
        return default_parameters()
    if isinstance(data, MenuParameters):
        return data
    if isinstance(data, LegacyMenuParameters):
        return migrate_legacy(data)
    if not isinstance(data, dict):
        raise InvalidParametersError("Les paramètres doivent être un objet JSON")

    version = data.get('version')
    if version is None:
        version = CURRENT_VERSION if 'configurations' in data else LEGACY_VERSION

    try:
        if version == LEGACY_VERSION:
            logger.info("[MenuParameters] Migration de paramètres legacy (v1 -> v2)")
            return migrate_legacy(LegacyMenuParameters.model_validate(data))
        if version == CURRENT_VERSION:
            return MenuParameters.model_validate(data)
    except ValidationError as exc:
        raise InvalidParametersError(_format_errors(exc)) from exc

    raise InvalidParametersError(f"Version de paramètres inconnue : {version}")


def _format_errors(exc: ValidationError) -> str:
    messages = []
    for error in exc.errors():
        location = '.'.join(str(part) for part in error.get('loc', ()))
        message = error.get('msg', '')
        messages.append(f"{location}: {message}" if location else message)
    return '; '.join(messages)


def serialize_for_settings(parameters: MenuParameters) -> dict:
    """Forme stockée dans MenuSettings : format courant, sans date de semaine"""
    data = parameters.model_dump(mode='json')
    data['week_start_date'] = None
    return data
