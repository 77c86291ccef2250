"""gribdl: fetch NWP model output from DWD and NOAA open-data servers.

Modules
-------
models.registry : ModelDescriptor, lookup, get_model
    Static metadata for every supported model.
schedule : most_recent_run, plan_steps
    Which run is published right now, and which forecast steps to fetch.
download.dwd : DWDDownloader
    Whole-file bzip2 archives from opendata.dwd.de.
download.noaa : NOAADownloader
    Byte-range extraction from GFS archives on AWS.
run_download : CLI
    ``gribdl dwd icon-eu --param t_2m`` / ``gribdl noaa gfs --height surface``.
"""

__version__ = "0.1.0"
