"""Company service."""

import logging
from typing import Any, Optional

from core.exceptions import ConflictError, NotFoundError
from database.engine import Database
from database.models.companies import Company
from database.repositories import CompanyRepository

logger = logging.getLogger(__name__)

COMPANY_FIELDS = ("name", "description", "website", "industry")


class CompanyService:
    def __init__(self, database: Database):
        self.database = database

    async def create_company(self, data: dict[str, Any], created_by: int) -> Company:
        """
        Raises:
            ConflictError: If a company with this name already exists
        """
        fields = {key: value for key, value in data.items() if key in COMPANY_FIELDS}

        async with self.database.session() as session:
            async with session.begin():
                companies = CompanyRepository(session)
                if await companies.get_by_name(fields["name"]) is not None:
                    raise ConflictError("Company with this name already exists")

                company = Company(created_by=created_by, **fields)
                await companies.add(company)

        logger.info(
            f"Company {company.id} created",
            extra={"event": "company_created", "company_id": company.id},
        )
        return company

    async def get_company(self, company_id: int) -> Company:
        """
        Raises:
            NotFoundError: If the company does not exist
        """
        async with self.database.session() as session:
            company = await CompanyRepository(session).get(company_id)
        if company is None:
            raise NotFoundError("Company not found")
        return company

    async def list_companies(
        self, industry: Optional[str] = None, limit: int = 20, offset: int = 0
    ) -> tuple[list[Company], int]:
        async with self.database.session() as session:
            return await CompanyRepository(session).list_page(
                industry=industry, limit=limit, offset=offset
            )

    async def update_company(self, company_id: int, data: dict[str, Any]) -> Company:
        """
        Update the given company fields; absent keys are left unchanged.

        Raises:
            NotFoundError: If the company does not exist
            ConflictError: If the new name belongs to another company
        """
        # A name cannot be cleared
        fields = {
            key: value
            for key, value in data.items()
            if key in COMPANY_FIELDS and not (key == "name" and value is None)
        }

        async with self.database.session() as session:
            async with session.begin():
                companies = CompanyRepository(session)
                company = await companies.get(company_id)
                if company is None:
                    raise NotFoundError("Company not found")

                name = fields.get("name")
                if name is not None and name != company.name:
                    existing = await companies.get_by_name(name)
                    if existing is not None and existing.id != company_id:
                        raise ConflictError("Company with this name already exists")

                for key, value in fields.items():
                    setattr(company, key, value)

        logger.info(
            f"Company {company_id} updated",
            extra={"event": "company_updated", "company_id": company_id, "fields": sorted(fields)},
        )
        return company
