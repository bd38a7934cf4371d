from .spawn_config import VesselSpawnConfig
from .types import LatLongPosition, Pose, Quaternion, Vector3, VesselData, rad_to_deg

__all__ = ["LatLongPosition", "Pose", "Quaternion", "Vector3", "VesselData", "VesselSpawnConfig", "rad_to_deg"]
