from typing import Any

from pydantic import AliasChoices, BaseModel, Field, model_validator

__all__ = ("HtmlPatch", "RemoteMutation")


class HtmlPatch(BaseModel):
    """An HTML fragment aimed at every element matching `selector`."""

    selector: str = Field(validation_alias=AliasChoices("selector", "what"))
    html: str = Field("", validation_alias=AliasChoices("html", "data"))


class RemoteMutation(BaseModel):
    """DOM changes returned by a remote endpoint, applied before a popup is shown.

    Both the documented keys (`setContent`, `injectScript`, `redirectUrl`) and the
    legacy ones (`replaces`, `content`, `js`, `refresh`, `redirect`) are accepted.
    """

    replace: list[HtmlPatch] = Field(
        default_factory=list, validation_alias=AliasChoices("replace", "replaces"), serialization_alias="replace"
    )
    append: list[HtmlPatch] = Field(default_factory=list)
    set_content: list[HtmlPatch] = Field(
        default_factory=list,
        validation_alias=AliasChoices("setContent", "set_content", "content"),
        serialization_alias="setContent",
    )
    inject_script: str | None = Field(
        None, validation_alias=AliasChoices("injectScript", "inject_script", "js"), serialization_alias="injectScript"
    )
    reload: bool = Field(False, validation_alias=AliasChoices("reload", "refresh"))
    redirect_url: str | None = Field(
        None,
        validation_alias=AliasChoices("redirectUrl", "redirect_url", "redirect"),
        serialization_alias="redirectUrl",
    )

    @model_validator(mode="before")
    @classmethod
    def drop_null_fields(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return {k: v for k, v in data.items() if v is not None}
        return data
