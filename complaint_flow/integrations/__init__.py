"""complaint_flow.integrations - adapters for external collaborators.

Services and blueprints reach the outside world only through the interfaces
defined here; concrete adapters are built once in ``create_app`` and stored
in ``app.extensions``.

Current adapters:
  cloud_drive.LocalCloudDrive - locally synced cloud-drive directory
"""

from complaint_flow.integrations.cloud_drive import CloudDrive, LocalCloudDrive

__all__ = ["CloudDrive", "LocalCloudDrive"]
