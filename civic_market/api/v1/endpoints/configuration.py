from typing import Annotated

from fastapi import APIRouter, Depends, Path

from civic_market.api.deps import get_configuration_store
from civic_market.core.errors import NotFound
from civic_market.models.configuration_flag import ConfigurationFlag
from civic_market.schemas.common import Envelope
from civic_market.schemas.configuration import FLAG_KEY_PATTERN, ConfigurationOut, ConfigurationUpsert
from civic_market.services.auth import Principal, require_municipal
from civic_market.services.configuration import ConfigurationStore, parse_flag_value

router = APIRouter()

FlagKey = Annotated[str, Path(min_length=3, max_length=100, pattern=FLAG_KEY_PATTERN)]


def _out(row: ConfigurationFlag) -> ConfigurationOut:
    return ConfigurationOut(
        key=row.key,
        value=row.value,
        description=row.description,
        enabled=parse_flag_value(row.value),
        updated_at=row.updated_at,
        updated_by=row.updated_by,
    )


@router.get("/config", response_model=Envelope[list[ConfigurationOut]])
async def list_configuration(
    principal: Principal = Depends(require_municipal),
    store: ConfigurationStore = Depends(get_configuration_store),
) -> Envelope[list[ConfigurationOut]]:
    rows = await store.list_all()
    return Envelope[list[ConfigurationOut]](message=f"{len(rows)} configuration flags", data=[_out(r) for r in rows])


@router.get("/config/{key}", response_model=Envelope[ConfigurationOut])
async def get_configuration(
    key: FlagKey,
    principal: Principal = Depends(require_municipal),
    store: ConfigurationStore = Depends(get_configuration_store),
) -> Envelope[ConfigurationOut]:
    row = await store.get(key)
    if row is None:
        raise NotFound("Configuration flag not found")
    return Envelope[ConfigurationOut](message="Configuration flag found", data=_out(row))


@router.put("/config/{key}", response_model=Envelope[ConfigurationOut])
async def upsert_configuration(
    body: ConfigurationUpsert,
    key: FlagKey,
    principal: Principal = Depends(require_municipal),
    store: ConfigurationStore = Depends(get_configuration_store),
) -> Envelope[ConfigurationOut]:
    row = await store.upsert(key, body.value, body.description, actor_id=principal.user_id)
    return Envelope[ConfigurationOut](message="Configuration flag saved", data=_out(row))
