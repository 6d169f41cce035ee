from texfab.cli import main

main()
