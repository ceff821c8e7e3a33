# Gate Log: database models
# Import all models here for SQLAlchemy discovery

from gatelog.models.vehicle_entry import VehicleEntry          # noqa
from gatelog.models.pedestrian_entry import PedestrianEntry    # noqa
from gatelog.models.log_note import LogNote                    # noqa
from gatelog.models.guard_account import GuardAccount          # noqa
from gatelog.models.evidence_blob import EvidenceBlob          # noqa
