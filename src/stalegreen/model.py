from typing import List
import pydantic


class Model(pydantic.BaseModel):
    model_config = pydantic.ConfigDict(extra="forbid", populate_by_name=True)


class Config(Model):
    required_contexts: List[str] = pydantic.Field(
        default_factory=list, alias="required-contexts"
    )
    approved_label: str = pydantic.Field("lgtm", alias="approved-label")
    retest_not_required_labels: List[str] = pydantic.Field(
        default_factory=lambda: [
            "retest-not-required",
            "retest-not-required-docs-only",
        ],
        alias="retest-not-required-labels",
    )

    @pydantic.field_validator("required_contexts")
    @classmethod
    def unique_contexts(cls, contexts: List[str]) -> List[str]:
        seen = set()
        ordered = []
        for context in contexts:
            if context not in seen:
                seen.add(context)
                ordered.append(context)
        return ordered
