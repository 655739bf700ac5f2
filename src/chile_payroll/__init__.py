"""Chilean payroll liquidation calculator."""
