import datetime
import kopf
import pgcluster


@kopf.on.probe(id="now")
def get_current_timestamp(**kwargs):
    return datetime.datetime.now(datetime.timezone.utc).isoformat()


@kopf.on.probe(id="version")
def get_operator_version(**kwargs):
    return pgcluster.__version__
