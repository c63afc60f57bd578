from anamnesis.interface.cli import app

app(prog_name="anamnesis")
