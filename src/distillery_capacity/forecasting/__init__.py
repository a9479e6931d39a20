"""Weekly utilization and demand forecasting."""
