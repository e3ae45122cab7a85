"""Socket transport, client and configuration types for the in-VM agent."""