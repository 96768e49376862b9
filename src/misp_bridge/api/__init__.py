# MISP Bridge: HTTP transport for the tool boundary
