"""LAN Drop — receive files from devices on the local network."""
