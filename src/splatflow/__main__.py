from splatflow.experiment.cli import main

main()
