"""Service catalogue"""

from pydantic import BaseModel
from typing import List, Optional

class Service(BaseModel):
    id: str
    name: str
    price: int

SERVICES: List[Service] = [
    Service(id="1", name="Signature Fade", price=1000),
    Service(id="2", name="Classic Cut", price=1000),
    Service(id="3", name="The Lineup", price=500),
    Service(id="4", name="Full Hair Dye + Beard Sculpt", price=1800),
    Service(id="5", name="The Fullup (Fade + Edges Only)", price=1200),
]

def find_service(service_id: str) -> Optional[Service]:
    return next((s for s in SERVICES if s.id == service_id), None)
