from tickflow.cli.app import main

main()
