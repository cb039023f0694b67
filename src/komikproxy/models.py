"""Records served to clients.

Field names are pythonic; JSON output uses the aliases, which for item
details follow the labels of the site's own info table.
"""

from pydantic import BaseModel, ConfigDict, Field


class Record(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    def to_dict(self) -> dict:
        return self.model_dump(by_alias=True)


class CatalogEntry(Record):
    origin_url: str = Field(alias="url")
    title: str
    slug: str | None = None


class Chapter(Record):
    origin_url: str = Field(alias="url")
    title: str
    date: str = ""
    ref: str = ""


class ItemDetail(Record):
    title: str = Field(alias="judul")
    localized_title: str = Field("", alias="judulIndonesia")
    category: str = Field("", alias="jenis")
    concept: str = Field("", alias="konsepCerita")
    synopsis: str = Field("", alias="sinopsis")
    author: str = Field("", alias="pengarang")
    status: str = ""
    age_rating: str = Field("", alias="umurPembaca")
    reading_direction: str = Field("", alias="caraBaca")
    genres: list[str] = Field(default_factory=list, alias="genre")
    cover_resource_id: str | None = Field(None, alias="cover")
    chapters: list[Chapter] = Field(default_factory=list)


class PageImage(Record):
    resource_id: str = Field(alias="resourceId")
    alt_text: str = Field("", alias="altText")


class ItemImages(Record):
    title: str
    pages: list[PageImage] = Field(default_factory=list)
