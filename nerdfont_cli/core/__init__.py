"""
Core application engine for orchestrating catalog updates and installs.

`CatalogSync` refreshes the local catalog from the registry. The
`DownloadScheduler` acts as the batch coordinator, delegating the work on each
individual package to the `PackageProcessor`.
"""
