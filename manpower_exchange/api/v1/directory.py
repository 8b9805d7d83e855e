"""/v1/companies and /v1/employees - registration of the parties to a loan"""

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from manpower_exchange.api.v1.schemas import CompanySchema, EmployeeSchema
from manpower_exchange.domain.exceptions import AlreadyExistsError
from manpower_exchange.infrastructure.database.repositories import CompanyRepository, EmployeeRepository
from manpower_exchange.infrastructure.database.session import get_db

router = APIRouter()


@router.post("/companies", response_model=CompanySchema, status_code=201)
def register_company(request_body: CompanySchema, db: Session = Depends(get_db)):
    try:
        company = CompanyRepository(db).add(request_body.to_domain())
    except AlreadyExistsError as e:
        db.rollback()
        logging.warning(f"Duplicate company: {e}")
        raise HTTPException(status_code=409, detail=str(e))
    return CompanySchema(company_id=company.company_id, name=company.name)


@router.get("/companies/{company_id}", response_model=CompanySchema)
def get_company(company_id: str, db: Session = Depends(get_db)):
    company = CompanyRepository(db).get(company_id)
    if not company:
        raise HTTPException(status_code=404, detail="Company not found")
    return CompanySchema(company_id=company.company_id, name=company.name)


@router.post("/employees", response_model=EmployeeSchema, status_code=201)
def register_employee(request_body: EmployeeSchema, db: Session = Depends(get_db)):
    """
    Register an employee.

    The employing company, when given, must already be registered.
    """
    if request_body.company_id and not CompanyRepository(db).get(request_body.company_id):
        raise HTTPException(status_code=404, detail="Company not found")

    try:
        employee = EmployeeRepository(db).add(request_body.to_domain())
    except AlreadyExistsError as e:
        db.rollback()
        logging.warning(f"Duplicate employee: {e}")
        raise HTTPException(status_code=409, detail=str(e))
    return EmployeeSchema(employee_id=employee.employee_id, name=employee.name, company_id=employee.company_id)


@router.get("/employees/{employee_id}", response_model=EmployeeSchema)
def get_employee(employee_id: str, db: Session = Depends(get_db)):
    employee = EmployeeRepository(db).get(employee_id)
    if not employee:
        raise HTTPException(status_code=404, detail="Employee not found")
    return EmployeeSchema(employee_id=employee.employee_id, name=employee.name, company_id=employee.company_id)
