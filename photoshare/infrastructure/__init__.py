# Infrastructure layer - data access
