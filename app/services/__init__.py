# Service layer for the FHEM NiceGUI Console
# - fhem_client:      httpx client for the FHEM command endpoint
# - command_channel:  submit a command, classify and render the reply
# - restart_recovery: restart FHEM and poll until it answers again
# - device_tree:      jsonlist inventory -> device tree
