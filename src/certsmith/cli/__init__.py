import typer
from dotenv import find_dotenv, load_dotenv

from certsmith.cli import crds

load_dotenv(find_dotenv(usecwd=True))

app = typer.Typer(
    help="certsmith: self-signed TLS certificates for Kubernetes",
    add_completion=False,
)

app.command("generate-crds")(crds.generate)
app.command("validate-models")(crds.check_models)


@app.command("operator")
def run_operator():
    """Run the certificate operator against the current cluster."""
    from certsmith.main import main

    main()
