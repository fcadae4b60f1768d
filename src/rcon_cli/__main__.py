from rcon_cli.main import app

app(prog_name="rcon-cli")
