from netzcam.cli import main

main()
