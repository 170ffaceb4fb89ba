"""Models for the analysis prompt configuration file.

The on-disk document keeps snake_case keys::

    {
      "version": "1.0.0",
      "last_updated": "2024-12-09",
      "description": "...",
      "ai_analysis": {
        "primary_language": "zh",
        "prompt_templates": {"word": {"zh": "..."}, "sentence": {"zh": "..."}},
        "default_ai_provider": {"provider_key": "zhipu_ai", "provider_name": "...", "auto_save_user_choice": true}
      }
    }
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Final

from dataclasses_json import DataClassJsonMixin

__all__: list[str] = [
    "AnalysisPromptSettings",
    "DefaultProviderSetting",
    "PromptConfig",
    "PromptTemplates",
    "default_prompt_config",
]

DEFAULT_PRIMARY_LANGUAGE: Final[str] = "zh"


@dataclass
class DefaultProviderSetting(DataClassJsonMixin):
    """Provider selected at startup.

    Attributes:
        provider_key (str): Provider id.
        provider_name (str): Display name recorded alongside the id.
        auto_save_user_choice (bool): Persist the selection whenever the user switches providers.
    """

    provider_key: str = "zhipu_ai"
    provider_name: str = "Zhipu AI"
    auto_save_user_choice: bool = True


@dataclass
class PromptTemplates(DataClassJsonMixin):
    """Templates per content kind, keyed by template language."""

    word: dict[str, str] = field(default_factory=dict)
    sentence: dict[str, str] = field(default_factory=dict)

    def for_kind(self, kind: str) -> dict[str, str]:
        if kind == "word":
            return self.word
        if kind == "sentence":
            return self.sentence
        msg: str = f"Unknown analysis kind: '{kind}'"
        raise ValueError(msg)


@dataclass
class AnalysisPromptSettings(DataClassJsonMixin):
    prompt_templates: PromptTemplates = field(default_factory=PromptTemplates)
    default_ai_provider: DefaultProviderSetting = field(default_factory=DefaultProviderSetting)
    primary_language: str = DEFAULT_PRIMARY_LANGUAGE


@dataclass
class PromptConfig(DataClassJsonMixin):
    """Prompt configuration document.

    Raises:
        ValueError: If the primary language lacks a word or sentence template.
    """

    ai_analysis: AnalysisPromptSettings = field(default_factory=AnalysisPromptSettings)
    version: str = "1.0.0"
    last_updated: str = ""
    description: str = ""

    def __post_init__(self) -> None:
        primary: str = self.ai_analysis.primary_language
        for kind in ("word", "sentence"):
            templates: dict[str, str] = self.ai_analysis.prompt_templates.for_kind(kind)
            if not isinstance(templates.get(primary), str) or not templates[primary].strip():
                msg: str = f"Missing '{kind}' template for primary language '{primary}'"
                raise ValueError(msg)

    @property
    def template_version(self) -> str:
        return f"{self.version}_{self.last_updated}"


_WORD_TEMPLATE_ZH: Final[str] = """请对单词或短语「{content}」进行详细解析，并使用{target_language}回答：

## 释义
给出该词在常见语境中的含义，并标注词性。

## 发音
给出音标或读音。

## 用法
列出常见搭配与固定用法。

## 例句
给出 2-3 个例句，并附{target_language}翻译。"""

_WORD_TEMPLATE_EN: Final[str] = """Explain the word or phrase "{content}" in detail. Answer in {target_language}.

## Meaning
Give its common meanings and part of speech.

## Pronunciation
Give the phonetic transcription.

## Usage
List common collocations and fixed expressions.

## Examples
Give 2-3 example sentences with {target_language} translations."""

_SENTENCE_TEMPLATE_ZH: Final[str] = """请对以下句子进行详细解析，并使用{target_language}回答：

{content}

## 翻译
给出准确、自然的{target_language}翻译。

## 词汇短语解析
列出关键单词与短语并给出释义。

## 语法结构
说明主语、谓语、从句等结构。

## 例句练习
用相同结构或替换单词造新句。"""

_SENTENCE_TEMPLATE_EN: Final[str] = """Analyze the following sentence in detail. Answer in {target_language}.

{content}

## Translation
Give an accurate and natural {target_language} translation.

## Vocabulary
List the key words and phrases with their meanings.

## Grammar
Explain the subject, predicate, clauses and other structures.

## Practice
Build new sentences with the same structure or substituted words."""


def default_prompt_config() -> PromptConfig:
    """Return the built-in prompt configuration used when no file can be loaded."""
    return PromptConfig(
        ai_analysis=AnalysisPromptSettings(
            prompt_templates=PromptTemplates(
                word={"zh": _WORD_TEMPLATE_ZH, "en": _WORD_TEMPLATE_EN},
                sentence={"zh": _SENTENCE_TEMPLATE_ZH, "en": _SENTENCE_TEMPLATE_EN},
            ),
            default_ai_provider=DefaultProviderSetting(),
            primary_language=DEFAULT_PRIMARY_LANGUAGE,
        ),
        version="1.0.0",
        last_updated="2024-12-09",
        description="AI analysis prompt configuration",
    )
