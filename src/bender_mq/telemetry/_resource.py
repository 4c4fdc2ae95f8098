import os
import socket
from datetime import datetime, timezone


def _process_metadata(service_name: str) -> dict:
    return {
        "service_name": service_name,
        "pid": os.getpid(),
        "host_name": socket.gethostname(),
        "start_time": datetime.now(timezone.utc).isoformat(),
    }


def _inject_otel_resource_attributes(resource: dict, metadata: dict) -> dict:
    enriched = dict(resource)
    enriched.update(
        {
            "service.name": metadata["service_name"],
            "process.pid": metadata["pid"],
            "host.name": metadata["host_name"],
            "bender_mq.start_time": metadata["start_time"],
        }
    )
    return enriched
