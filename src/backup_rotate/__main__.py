from backup_rotate.cli.app import main

main()
