from dataclasses import dataclass

from mashumaro.mixins.orjson import DataClassORJSONMixin


@dataclass(frozen=True)
class Repository(DataClassORJSONMixin):
    # only the two fields a mirror needs, the API sends many more
    full_name: str
    clone_url: str

    def __str__(self) -> str:
        return self.full_name
