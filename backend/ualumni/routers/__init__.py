"""API router aggregator.

Combines every resource router into a single router for the main app.
Each resource documents the `{statusCode, message}` error envelope.
"""

from fastapi import APIRouter

from ..schemas import ERROR_RESPONSES
from . import alumni, alumni_to_verify, catalog, ciap_courses, job_offers, resume

api_router = APIRouter(responses=ERROR_RESPONSES)

api_router.include_router(alumni_to_verify.router, prefix="/alumni-to-verify", tags=["Alumni to verify"])
api_router.include_router(resume.router, prefix="/alumni/{email}/resume", tags=["Resume"])
api_router.include_router(alumni.router, prefix="/alumni", tags=["Alumni"])
api_router.include_router(catalog.language_router, prefix="/language", tags=["Language"])
api_router.include_router(catalog.career_router, prefix="/career", tags=["Career"])
api_router.include_router(catalog.contract_type_router, prefix="/contract-type", tags=["Contract type"])
api_router.include_router(
    catalog.industry_of_interest_router, prefix="/industry-of-interest", tags=["Industry of interest"]
)
api_router.include_router(catalog.technical_skill_router, prefix="/technical-skill", tags=["Technical skill"])
api_router.include_router(ciap_courses.router, prefix="/ciap-course", tags=["CIAP course"])
api_router.include_router(job_offers.router, prefix="/job-offer", tags=["Job offer"])
