from harvester.harvest import cli

cli()
