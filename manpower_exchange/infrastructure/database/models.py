"""SQLAlchemy ORM models for companies, employees and loan transactions"""

from sqlalchemy import Column, Date, ForeignKey, Numeric, Text
from sqlalchemy.orm import declarative_base, relationship

from manpower_exchange.domain.models import COST_DECIMAL_PLACES, COST_MAX_DIGITS

Base = declarative_base()


class CompanyModel(Base):
    """Company registered in the exchange"""

    __tablename__ = "companies"

    uen = Column(Text, primary_key=True)
    name = Column(Text, nullable=False)

    employees = relationship("EmployeeModel", back_populates="company")


class EmployeeModel(Base):
    """Employee of a registered company"""

    __tablename__ = "employees"

    work_permit_number = Column(Text, primary_key=True)
    name = Column(Text, nullable=False)
    company_uen = Column(Text, ForeignKey("companies.uen"), nullable=True, index=True)

    company = relationship("CompanyModel", back_populates="employees")


class TransactionModel(Base):
    """Loan of an employee, keyed by both companies, the employee and the start date"""

    __tablename__ = "transactions"

    loan_company_id = Column(Text, ForeignKey("companies.uen"), primary_key=True)
    borrowing_company_id = Column(Text, ForeignKey("companies.uen"), primary_key=True)
    employee_id = Column(Text, ForeignKey("employees.work_permit_number"), primary_key=True, index=True)
    loan_start_date = Column(Date, primary_key=True)
    loan_end_date = Column(Date, nullable=False)
    total_cost = Column(Numeric(COST_MAX_DIGITS, COST_DECIMAL_PLACES), nullable=False)
    loan_status = Column(Text, nullable=False)

    loan_company = relationship("CompanyModel", foreign_keys=[loan_company_id])
    borrowing_company = relationship("CompanyModel", foreign_keys=[borrowing_company_id])
    employee = relationship("EmployeeModel")
