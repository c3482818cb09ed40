"""Endpoints for the name-keyed catalogues (languages, careers, ...).

Every catalogue exposes the same four operations, so the routers are
built by `build_catalog_router` from the matching service class.
"""

from typing import Type

from fastapi import APIRouter, Depends, Query
from sqlmodel import Session

from .. import services
from ..database import get_session
from ..schemas import CatalogCreate, CatalogOut, Envelope, Page, envelope


def build_catalog_router(service_cls: Type[services.CatalogService]) -> APIRouter:
    router = APIRouter()

    @router.post("", status_code=201, response_model=Envelope[CatalogOut])
    def create_entry(payload: CatalogCreate, db: Session = Depends(get_session)):
        entry = service_cls(db).create(payload.name)
        return envelope(201, CatalogOut.model_validate(entry))

    @router.get("", response_model=Envelope[Page[CatalogOut]])
    def list_entries(
        page: int = Query(1, ge=1),
        per_page: int = Query(10, ge=1, le=services.MAX_ITEMS_PER_PAGE, alias="per-page"),
        db: Session = Depends(get_session),
    ):
        result = service_cls(db).find_all(page, per_page)
        items = [CatalogOut.model_validate(e) for e in result["items"]]
        return envelope(200, {"items": items, "meta": result["meta"]})

    @router.get("/{name}", response_model=Envelope[CatalogOut])
    def get_entry(name: str, db: Session = Depends(get_session)):
        return envelope(200, CatalogOut.model_validate(service_cls(db).find_one(name)))

    @router.delete("/{name}", response_model=Envelope[CatalogOut])
    def remove_entry(name: str, db: Session = Depends(get_session)):
        return envelope(200, CatalogOut.model_validate(service_cls(db).remove(name)))

    return router


language_router = build_catalog_router(services.LanguageService)
career_router = build_catalog_router(services.CareerService)
contract_type_router = build_catalog_router(services.ContractTypeService)
industry_of_interest_router = build_catalog_router(services.IndustryOfInterestService)
technical_skill_router = build_catalog_router(services.TechnicalSkillService)
