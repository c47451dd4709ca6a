# app/models/__init__.py
from .dealer import Dealer
from .profile import Profile, ProfileRole
from .concesionario import Concesionario
from .client import Client
from .vehicle import Vehicle, VehicleStatus, VehicleCondition
from .contract import Contract, ContractStatus, FinancingType, OPEN_CONTRACT_STATUSES
from .insurance import Insurance, InsuranceStatus, CoverageType, STORED_INSURANCE_STATUSES

__all__ = [
    "Dealer",
    "Profile",
    "ProfileRole",
    "Concesionario",
    "Client",
    "Vehicle",
    "VehicleStatus",
    "VehicleCondition",
    "Contract",
    "ContractStatus",
    "FinancingType",
    "OPEN_CONTRACT_STATUSES",
    "Insurance",
    "InsuranceStatus",
    "CoverageType",
    "STORED_INSURANCE_STATUSES",
]
