"""
JSON Schema Contract Validators

Модуль для валидации JSON данных согласно формальным JSON Schema контрактам.
Использует библиотеку jsonschema для проверки соответствия данных схемам.

Схемы (ideamarket/core/contracts/schema/):
- market_definition.json (параметры нового рынка)
- trade_request.json (запрос buy/sell)
"""

import json
from pathlib import Path
from typing import Any, Dict

import jsonschema
from jsonschema import Draft202012Validator

from ideamarket.core.domain.market import MarketDefinition
from ideamarket.core.domain.trade import TradeRequest


# =============================================================================
# SCHEMA LOADER
# =============================================================================


class SchemaLoader:
    """
    Загрузчик JSON Schema файлов.

    Схемы поставляются вместе с пакетом в каталоге schema/ рядом с модулем.
    """

    def __init__(self, schema_dir: Path | None = None):
        self._schema_dir = schema_dir or Path(__file__).parent / "schema"
        if not self._schema_dir.exists():
            raise RuntimeError(f"Schema directory not found: {self._schema_dir}")

        # Кэш загруженных схем
        self._schemas: Dict[str, Dict[str, Any]] = {}

    def load_schema(self, schema_name: str) -> Dict[str, Any]:
        """
        Загрузка JSON Schema файла.

        Args:
            schema_name: Имя схемы без расширения (например, 'trade_request')

        Returns:
            Загруженная схема как dict

        Raises:
            FileNotFoundError: Если файл схемы не найден
            ValueError: Если схема сама по себе невалидна
        """
        if schema_name in self._schemas:
            return self._schemas[schema_name]

        schema_path = self._schema_dir / f"{schema_name}.json"
        if not schema_path.exists():
            raise FileNotFoundError(f"Schema not found: {schema_path}")

        with open(schema_path, "r", encoding="utf-8") as f:
            schema = json.load(f)

        # Meta-validation
        try:
            Draft202012Validator.check_schema(schema)
        except jsonschema.SchemaError as e:
            raise ValueError(f"Invalid JSON Schema in {schema_name}.json: {e}") from e

        self._schemas[schema_name] = schema
        return schema


# Глобальный экземпляр загрузчика
_SCHEMA_LOADER = SchemaLoader()


# =============================================================================
# CONTRACT VALIDATORS
# =============================================================================


class ContractValidator:
    """
    Базовый класс для валидаторов контрактов.

    Инкапсулирует логику валидации данных против JSON Schema.
    """

    def __init__(self, schema_name: str):
        self.schema_name = schema_name
        self.schema = _SCHEMA_LOADER.load_schema(schema_name)
        self.validator = Draft202012Validator(self.schema)

    def validate(self, data: Dict[str, Any]) -> None:
        """
        Валидация данных против схемы.

        Raises:
            jsonschema.ValidationError: Если данные не соответствуют схеме
        """
        self.validator.validate(data)

    def is_valid(self, data: Dict[str, Any]) -> bool:
        """Проверка валидности данных без exception."""
        return self.validator.is_valid(data)

    def iter_errors(self, data: Dict[str, Any]):
        """Итератор по всем ошибкам валидации."""
        return self.validator.iter_errors(data)


class MarketDefinitionValidator(ContractValidator):
    """Валидатор для market_definition контракта."""

    def __init__(self):
        super().__init__("market_definition")


class TradeRequestValidator(ContractValidator):
    """Валидатор для trade_request контракта."""

    def __init__(self):
        super().__init__("trade_request")


# =============================================================================
# CONVENIENCE FUNCTIONS
# =============================================================================


def validate_market_definition(data: Dict[str, Any]) -> None:
    """
    Валидация market_definition данных.

    Raises:
        jsonschema.ValidationError: Если данные не соответствуют схеме
    """
    MarketDefinitionValidator().validate(data)


def validate_trade_request(data: Dict[str, Any]) -> None:
    """
    Валидация trade_request данных.

    Raises:
        jsonschema.ValidationError: Если данные не соответствуют схеме
    """
    TradeRequestValidator().validate(data)


def parse_market_definition(data: Dict[str, Any]) -> MarketDefinition:
    """Валидация по схеме и построение MarketDefinition."""
    validate_market_definition(data)
    return MarketDefinition(**data)


def parse_trade_request(data: Dict[str, Any]) -> TradeRequest:
    """Валидация по схеме и построение TradeRequest."""
    validate_trade_request(data)
    return TradeRequest(**data)
