"""
Shared test configuration and seed data.
"""

import sys
import copy
from pathlib import Path

# Add project root directory to Python path so the ar_analytics package can be found
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

import pytest

from ar_analytics.core.ports.tenant_resolver import Tenant


TENANT_DATABASE = "argo_egi_test"
API_KEY = "secretkey"


def sample(date, site, ngi, supergroup, availability, reliability, weight,
           uptime=1.0, downtime=0.0, unknown=0.0, **overrides):
    """Build one stored metric sample document."""
    document = {
        "date": date,
        "report": "Report_A",
        "profile": "ap1",
        "namespace": "ns1",
        "infrastructure": "Production",
        "certification": "Certified",
        "production": "Y",
        "monitored": "Y",
        "site": site,
        "ngi": ngi,
        "supergroup": supergroup,
        "uptime": uptime,
        "downtime": downtime,
        "unknown": unknown,
        "availability": availability,
        "reliability": reliability,
        "weight": weight,
    }
    document.update(overrides)
    return document


SEED_DOCUMENTS = [
    sample(20150622, "ST01", "NGI_A", "GROUP_A", 66.7, 54.6, 5634),
    sample(20150622, "ST02", "NGI_A", "GROUP_A", 70, 45, 4356),
    sample(20150623, "ST01", "NGI_A", "GROUP_A", 100, 100, 5634),
    sample(20150623, "ST02", "NGI_A", "GROUP_A", 43.5, 56, 4356),
    sample(20150623, "ST04", "NGI_B", "GROUP_B", 30, 100, 5344),
    sample(20150623, "ST05", "NGI_C", "GROUP_B", 90, 100, 5634, uptime=0.0, unknown=1.0),
    sample(20150624, "ST05", "NGI_C", "GROUP_B", 40, 70, 5634),
    sample(20150625, "ST05", "NGI_C", "GROUP_B", 40, 70, 5634),
    # excluded by the default production/monitored constraints
    sample(20150622, "ST09", "NGI_A", "GROUP_A", 10, 10, 1000, production="N"),
    sample(20150622, "ST08", "NGI_A", "GROUP_A", 20, 20, 1000, monitored="N"),
    # outside the June range
    sample(20150701, "ST01", "NGI_A", "GROUP_A", 50, 50, 5634),
]


@pytest.fixture
def seed_documents():
    """Fixture providing a fresh copy of the seed documents."""
    return copy.deepcopy(SEED_DOCUMENTS)


@pytest.fixture
def tenant():
    """Fixture providing the test tenant."""
    return Tenant(name="EGI", database=TENANT_DATABASE)


@pytest.fixture
def june_range():
    """Start and end parameters covering the seeded June days."""
    return "2015-06-20T12:00:00Z", "2015-06-26T23:00:00Z"
