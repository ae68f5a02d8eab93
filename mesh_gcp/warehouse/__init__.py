from .bigquery import BigQueryWarehouse

__all__ = ["BigQueryWarehouse"]
