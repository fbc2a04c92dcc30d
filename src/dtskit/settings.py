from typing import List, Optional

from pydantic import Field
from pydantic_settings import (
    BaseSettings,
    JsonConfigSettingsSource,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    TomlConfigSettingsSource,
)


class DtsSettings(BaseSettings):
    """Settings shared by the flatten, extract and list commands."""

    model_config = SettingsConfigDict(env_prefix="DTSKIT_")

    private_prefixes: List[str] = Field(
        default_factory=lambda: ["_"],
        description="Member name prefixes that mark a declaration as private.",
    )
    private_names: List[str] = Field(
        default_factory=lambda: ["#private"],
        description=(
            "Exact member names that are always stripped from flattened output "
            '(tsc emits "#private" for classes with ECMAScript private fields).'
        ),
    )
    strip_internal: bool = Field(
        default=True,
        description="If True, declarations tagged @internal or @private are removed when flattening.",
    )
    module_suffixes: List[str] = Field(
        default_factory=lambda: ["/index", ".d.ts"],
        description=(
            "Suffixes tried, in order, when a module name does not match a declared "
            "module exactly."
        ),
    )
    warn_undocumented: bool = Field(
        default=True,
        description="If True, extract warns about declarations without a documentation comment.",
    )
    check_params: bool = Field(
        default=True,
        description="If True, extract compares @param blocks against the declared parameters.",
    )
    indent: int = Field(
        default=4,
        description="Indentation used for JSON output.",
    )

    def is_private_name(self, name: str) -> bool:
        if name in self.private_names:
            return True
        return any(name.startswith(p) for p in self.private_prefixes)


def load_settings(
    env_prefix: Optional[str] = None,
    env_file: Optional[str] = None,
    toml_file: Optional[str] = None,
    json_file: Optional[str] = None,
    **kwargs,
) -> DtsSettings:
    """
    Build settings from the environment and optional config files. Keyword
    arguments take precedence over every other source.
    """
    config_dict = SettingsConfigDict(
        env_prefix=env_prefix if env_prefix is not None else "DTSKIT_",
        env_file=env_file,
        toml_file=toml_file,
        json_file=json_file,
    )

    class Settings(DtsSettings):
        model_config = config_dict

        @classmethod
        def settings_customise_sources(
            cls,
            settings_cls: type[BaseSettings],
            init_settings: PydanticBaseSettingsSource,
            env_settings: PydanticBaseSettingsSource,
            dotenv_settings: PydanticBaseSettingsSource,
            file_secret_settings: PydanticBaseSettingsSource,
        ) -> tuple[PydanticBaseSettingsSource, ...]:
            sources = [init_settings, env_settings, dotenv_settings]
            if toml_file:
                sources.append(TomlConfigSettingsSource(settings_cls))
            if json_file:
                sources.append(JsonConfigSettingsSource(settings_cls))
            return tuple(sources)

    return Settings(**kwargs)
