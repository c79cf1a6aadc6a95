# Integrations with external record stores
