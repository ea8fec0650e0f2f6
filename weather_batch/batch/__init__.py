# Pipeline runtime and jobs
