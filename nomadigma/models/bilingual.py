# nomadigma/models/bilingual.py
from enum import Enum
from typing import Dict, Optional, Any
from pydantic import BaseModel, Field

class Language(str, Enum):
    EN = "en"
    ES = "es"

    @property
    def counterpart(self) -> "Language":
        return Language.ES if self is Language.EN else Language.EN

    @property
    def display_name(self) -> str:
        return "English" if self is Language.EN else "Spanish"

class LocalizedFields(BaseModel):
    """Textual fields of an entity in one language"""
    title: Optional[str] = None
    description: Optional[str] = None
    content: Optional[str] = None
    slug: Optional[str] = None

class BilingualPayload(BaseModel):
    """Parallel per-language fields of a post or product row"""
    en: LocalizedFields = Field(default_factory=LocalizedFields)
    es: LocalizedFields = Field(default_factory=LocalizedFields)

    def get(self, language: Language) -> LocalizedFields:
        return self.en if Language(language) is Language.EN else self.es

    def set(self, language: Language, fields: LocalizedFields) -> None:
        if Language(language) is Language.EN:
            self.en = fields
        else:
            self.es = fields

    def to_columns(self, include_content: bool = True,
                   exclude_none: bool = False) -> Dict[str, Any]:
        """Map to the `<field>_<lang>` column names"""
        names = ["title", "description", "slug"]
        if include_content:
            names.append("content")

        columns = {}
        for language in Language:
            fields = self.get(language)
            for name in names:
                value = getattr(fields, name)
                if exclude_none and value is None:
                    continue
                columns[f"{name}_{language.value}"] = value
        return columns

    @classmethod
    def from_columns(cls, row: Dict[str, Any]) -> "BilingualPayload":
        payload = cls()
        for language in Language:
            payload.set(language, LocalizedFields(
                title=row.get(f"title_{language.value}"),
                description=row.get(f"description_{language.value}"),
                content=row.get(f"content_{language.value}"),
                slug=row.get(f"slug_{language.value}"),
            ))
        return payload
